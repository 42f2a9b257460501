"""Audit and compile the convtoc gettext .po catalogues into .mo files."""
from __future__ import annotations

import argparse
import re
import shutil
import subprocess
import sys
from collections.abc import Sequence
from pathlib import Path

import polib

_NPLURALS_RE = re.compile(r"nplurals\s*=\s*(\d+)")


def catalogue_problems(po_file: Path) -> list[str]:
    """Return human readable issues found in one ``.po`` catalogue.

    Untranslated and fuzzy entries fall back to English at runtime. Plural
    entries must provide every form announced by ``Plural-Forms`` or the
    file and image badges pick a missing form for some counts.
    """
    catalogue = polib.pofile(str(po_file))
    problems = [f"untranslated: {entry.msgid!r}" for entry in catalogue.untranslated_entries()]
    problems.extend(f"fuzzy: {entry.msgid!r}" for entry in catalogue.fuzzy_entries())
    match = _NPLURALS_RE.search(catalogue.metadata.get("Plural-Forms", ""))
    if match is None:
        if any(entry.msgid_plural for entry in catalogue):
            problems.append("missing Plural-Forms header")
        return problems
    nplurals = int(match.group(1))
    for entry in catalogue:
        if entry.obsolete or not entry.msgid_plural:
            continue
        if len(entry.msgstr_plural) != nplurals:
            problems.append(
                f"plural forms: {entry.msgid!r} has {len(entry.msgstr_plural)}, expected {nplurals}"
            )
    return problems


def compile_all(locales_dir: Path, *, strict: bool = False) -> list[Path]:
    """Compile every ``.po`` file under ``locales_dir``; return the ``.mo`` paths.

    Catalogue problems are reported on stderr. With *strict* they abort the
    run before anything is compiled.
    """
    if shutil.which("msgfmt") is None:
        print("msgfmt not found. Please install GNU gettext.", file=sys.stderr)
        raise SystemExit(1)

    po_files = sorted(locales_dir.rglob("*.po"))
    failed = False
    for po_file in po_files:
        for problem in catalogue_problems(po_file):
            print(f"{po_file}: {problem}", file=sys.stderr)
            failed = True
    if strict and failed:
        raise SystemExit(1)

    compiled: list[Path] = []
    for po_file in po_files:
        mo_file = po_file.with_suffix(".mo")
        subprocess.run(["msgfmt", "--check-format", str(po_file), "-o", str(mo_file)], check=True)
        compiled.append(mo_file)
    return compiled


def main(argv: Sequence[str] | None = None) -> None:
    root = Path(__file__).resolve().parent
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--locale-dir",
        type=Path,
        default=root / "convtoc" / "locale",
        help="directory holding <lang>/LC_MESSAGES/convtoc.po",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="fail on untranslated, fuzzy or incomplete plural entries",
    )
    args = parser.parse_args(argv)
    compile_all(args.locale_dir, strict=args.strict)


if __name__ == "__main__":
    main()
