from __future__ import annotations

from convtoc.toc_list import TocItem, TocListModel, build_search_text


def _item(target_id: str, ordinal: int, title: str, meta: str | None = None) -> TocItem:
    return TocItem(
        target_id=target_id,
        ordinal=ordinal,
        title=title,
        meta=meta,
        search_text=build_search_text(title, meta),
    )


def _model() -> TocListModel:
    model = TocListModel()
    model.reset(
        [
            _item("a", 0, "Deploy to staging", "Run the pipeline"),
            _item("b", 1, "Fix flaky test", "Use a fixture"),
            _item("c", 2, "📎 report.pdf", None),
        ]
    )
    return model


def test_build_search_text():
    assert build_search_text("Title", "Summary") == "title summary"
    assert build_search_text("Title", None) == "title"


def test_title_row_is_one_based():
    assert _item("x", 4, "Hello").title_row == "5. Hello"


def test_filter_is_case_insensitive_and_trims():
    model = _model()
    visible = model.apply_filter("  DEPLOY ")
    assert [item.target_id for item in visible] == ["a"]
    assert model.keyword == "deploy"


def test_filter_matches_assistant_summary():
    model = _model()
    assert [item.target_id for item in model.apply_filter("fixture")] == ["b"]


def test_empty_filter_shows_everything():
    model = _model()
    model.apply_filter("nothing matches")
    assert model.visible_items() == []
    assert len(model.apply_filter("")) == 3
    assert len(model.apply_filter(None)) == 3


def test_reset_reapplies_active_filter():
    model = _model()
    model.apply_filter("report")
    model.reset([_item("a", 0, "other"), _item("c", 1, "📎 report.pdf")])
    assert [item.target_id for item in model.visible_items()] == ["c"]


def test_update_meta_patches_one_item_and_refilters():
    model = _model()
    changed: list[TocItem] = []
    model.item_changed.connect(changed.append)
    model.apply_filter("streamed")

    item = model.update_meta("b", "Now with streamed tokens")

    assert changed == [item]
    assert item.meta == "Now with streamed tokens"
    assert item.visible
    assert model.item("a").meta == "Run the pipeline"
    assert model.update_meta("missing", "x") is None


def test_signals():
    model = TocListModel()
    resets, filters, activations = [], [], []
    model.reset_signal.connect(resets.append)
    model.filter_changed.connect(filters.append)
    model.activated.connect(activations.append)
    model.reset([_item("a", 0, "x")])
    model.apply_filter("x")
    model.activate("a")
    model.activate("unknown")
    model.clear()
    assert resets == [model, model]
    assert filters == [model]
    assert activations == ["a"]
    assert len(model) == 0


def test_shared_target_id_resolves_to_last_item():
    model = TocListModel()
    first = _item("dup", 0, "Older question")
    last = _item("dup", 1, "Newer question")
    model.reset([first, last])

    assert model.item("dup") is last
    model.update_meta("dup", "Streamed reply")
    assert last.meta == "Streamed reply"
    assert first.meta is None
    assert [item.title for item in model.apply_filter("older")] == ["Older question"]
