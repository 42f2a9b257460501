"""wxPython rendering of the TOC panel and its launcher."""
