from __future__ import annotations

from convtoc import i18n
from convtoc.classifier import ContentClassifier
from convtoc.document import HostDocument
from convtoc.locator import TurnLocator


def test_untranslated_by_default():
    i18n.install([])
    assert i18n._("Hide") == "Hide"
    assert i18n.ngettext("{count} file", "{count} files", 2) == "{count} files"


def test_russian_catalogue_is_loaded_from_po_file():
    i18n.install(["ru"])
    assert i18n.gettext("Hide") == "Скрыть"
    assert i18n.gettext("Search in TOC…") == "Поиск по оглавлению…"
    assert i18n.ngettext("{count} file", "{count} files", 1) == "{count} файл"
    assert i18n.ngettext("{count} file", "{count} files", 3) == "{count} файла"
    assert i18n.ngettext("{count} file", "{count} files", 5) == "{count} файлов"


def test_labels_follow_active_language():
    i18n.install(["ru"])
    document = HostDocument.from_html(
        '<main><div data-testid="conversation-turn"><div data-message-author-role="user"></div>'
        '<img src="https://cdn.example/a.png"><img src="https://cdn.example/b.png"></div></main>'
    )
    record = ContentClassifier(document).describe_turn(TurnLocator().last_turn(document))
    assert record.title == "📷 2 изображения"


def test_unknown_language_falls_back(tmp_path):
    translation = i18n.install(["xx"], localedir=tmp_path)
    assert translation.gettext("Hide") == "Hide"
    assert i18n.get_translation() is translation
