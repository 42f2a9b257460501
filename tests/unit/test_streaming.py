from __future__ import annotations

from convtoc.document import HostDocument
from convtoc.scheduling import VirtualScheduler
from convtoc.settings import TocSettings
from convtoc.sync import SynchronizationEngine
from convtoc.toc_list import TocItem


def _document() -> HostDocument:
    return HostDocument.from_html(
        """
        <main>
          <div data-testid="conversation-turn">
            <div data-message-author-role="user">Earlier</div>
            <div data-message-author-role="assistant"><div class="markdown"><p>Old reply</p></div></div>
          </div>
          <div data-testid="conversation-turn">
            <div data-message-author-role="user">Latest</div>
            <div data-message-author-role="assistant"><div class="markdown"><p id="live">Str</p></div></div>
          </div>
        </main>
        """
    )


def _setup(**settings):
    document = _document()
    scheduler = VirtualScheduler()
    engine = SynchronizationEngine(document, scheduler, settings=TocSettings(**settings))
    engine.rebuild()
    return document, scheduler, engine


def test_rebuild_watches_the_last_reply():
    _, _, engine = _setup()
    last = engine.toc_list.items[-1]
    assert engine.patcher.watching
    assert engine.session.watched_target_id == last.target_id
    assert last.meta == "Str"


def test_patch_waits_for_quiet_period():
    document, scheduler, engine = _setup()
    live = document.get_element_by_id("live")
    changed: list[TocItem] = []
    engine.toc_list.item_changed.connect(changed.append)

    document.append_text(live, "eam")
    scheduler.advance(0.4)
    document.append_text(live, "ing")
    scheduler.advance(0.4)
    assert changed == []

    scheduler.advance(0.3)

    assert [item.title for item in changed] == ["Latest"]
    assert engine.toc_list.items[-1].meta == "Streaming"
    assert engine.toc_list.items[0].meta == "Old reply"
    assert engine.session.rebuild_count == 1


def test_patch_refreshes_search_text():
    document, scheduler, engine = _setup()
    engine.apply_filter("streaming")
    assert engine.toc_list.visible_items() == []
    document.append_text(document.get_element_by_id("live"), "eaming")
    scheduler.advance(0.6)
    assert [item.title for item in engine.toc_list.visible_items()] == ["Latest"]


def test_replaced_blocks_inside_reply_are_observed():
    document, scheduler, engine = _setup()
    live = document.get_element_by_id("live")
    markdown = live.parent
    document.remove(live)
    document.append(markdown, "<p>Rewritten answer</p>")
    scheduler.advance(0.6)
    assert engine.toc_list.items[-1].meta == "Rewritten answer"


def test_watch_same_reply_is_a_no_op():
    _, _, engine = _setup()
    turn = engine.locator.last_turn(engine.document)
    turn.stable_id = engine.session.watched_target_id
    assert engine.patcher.watch(turn) is False
    assert engine.document.observer_count == 1


def test_turn_without_reply_drops_the_watch():
    document, scheduler, engine = _setup()
    document.append(
        document.body,
        '<div data-testid="conversation-turn"><div data-message-author-role="user">Newest</div></div>',
    )
    engine.rebuild()
    assert not engine.patcher.watching
    document.append_text(document.get_element_by_id("live"), "eam")
    scheduler.advance(1.0)
    assert engine.session.patch_count == 1


def test_preview_disabled_installs_nothing():
    document, _, engine = _setup(show_assistant_preview=False)
    assert not engine.patcher.watching
    assert document.observer_count == 0
