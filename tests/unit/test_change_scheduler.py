from __future__ import annotations

from convtoc.change_scheduler import ChangeScheduler, ChangeState
from convtoc.document import HostDocument
from convtoc.scheduling import VirtualScheduler
from convtoc.settings import TocSettings
from convtoc.sync import SynchronizationEngine


def _turn(text: str, reply: str | None = "Reply") -> str:
    assistant = ""
    if reply is not None:
        assistant = f'<div data-message-author-role="assistant"><p>{reply}</p></div>'
    return (
        '<div data-testid="conversation-turn">'
        f'<div data-message-author-role="user">{text}</div>{assistant}</div>'
    )


def _setup(html: str = "", *, supports_idle: bool = True):
    document = HostDocument.from_html(f"<main>{html}</main>")
    scheduler = VirtualScheduler(supports_idle=supports_idle)
    engine = SynchronizationEngine(document, scheduler, settings=TocSettings())
    changes = ChangeScheduler(engine, scheduler)
    return document, scheduler, engine, changes


def test_start_schedules_initial_sync():
    _, scheduler, engine, changes = _setup(_turn("Hello"))
    changes.start()
    assert changes.state is ChangeState.PENDING
    assert len(engine.toc_list) == 0

    assert scheduler.run_idle() == 1

    assert changes.state is ChangeState.IDLE
    assert [item.title for item in engine.toc_list.items] == ["Hello"]
    assert changes.syncs_run == 1


def test_burst_of_turns_runs_one_check():
    document, scheduler, engine, changes = _setup()
    changes.start()
    scheduler.run_idle()

    for index in range(3):
        document.append(document.body, _turn(f"Message {index}"))

    assert changes.dropped == 2
    assert scheduler.pending == 1
    scheduler.run_idle()
    assert changes.checks_run == 2
    assert [item.title for item in engine.toc_list.items] == [
        "Message 0",
        "Message 1",
        "Message 2",
    ]


def test_debounce_fallback_without_idle_support():
    document, scheduler, engine, changes = _setup(supports_idle=False)
    changes.start()
    scheduler.advance(0.7)
    document.append(document.body, _turn("Late"))

    scheduler.advance(0.5)
    assert len(engine.toc_list) == 0
    scheduler.advance(0.2)
    assert [item.title for item in engine.toc_list.items] == ["Late"]


def test_idle_check_runs_by_timeout_when_host_stays_busy():
    _, scheduler, engine, changes = _setup(_turn("Busy"))
    changes.start()
    scheduler.advance(1.0)
    assert changes.checks_run == 0
    scheduler.advance(0.3)
    assert changes.checks_run == 1
    assert len(engine.toc_list) == 1


def test_text_edits_do_not_trigger():
    document, scheduler, _, changes = _setup(_turn("Hello"))
    changes.start()
    scheduler.run_idle()
    user = document.select_one('[data-message-author-role="user"]')

    document.append_text(user, " again")
    document.append(user, "<b>bold</b>")

    assert changes.state is ChangeState.IDLE
    assert scheduler.pending == 0


def test_unchanged_count_refreshes_watch_instead_of_rebuilding():
    document, scheduler, engine, changes = _setup(_turn("Question", reply=None))
    changes.start()
    scheduler.run_idle()
    [item] = engine.toc_list.items
    assert item.meta == ""
    assert not engine.patcher.watching

    container = document.select_one('[data-testid="conversation-turn"]')
    document.append(container, '<div data-message-author-role="assistant"><p>Streaming start</p></div>')
    assert changes.state is ChangeState.PENDING
    scheduler.run_idle()

    assert changes.syncs_run == 1
    assert engine.session.rebuild_count == 1
    assert engine.patcher.watching
    assert engine.toc_list.items[0].meta == "Streaming start"


def test_trigger_during_check_reruns_afterwards():
    document, scheduler, engine, changes = _setup(_turn("One"))
    engine.toc_list.reset_signal.connect(lambda _model: changes.trigger())
    changes.start()

    scheduler.run_idle()

    assert changes.state is ChangeState.PENDING
    assert changes.checks_run == 1
    scheduler.run_idle()
    assert changes.checks_run == 2
    assert changes.syncs_run == 1


def test_stop_cancels_pending_check_and_unsubscribes():
    document, scheduler, engine, changes = _setup(_turn("One"))
    changes.start()
    changes.stop()
    assert changes.state is ChangeState.IDLE
    assert scheduler.run_idle() == 0
    document.append(document.body, _turn("Two"))
    assert scheduler.pending == 0
    assert len(engine.toc_list) == 0
