from __future__ import annotations

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

# highlight.js has no `html` language, its markup grammar is registered as `xml`
LANGUAGE_ALIASES = {"html": "xml"}


def syntax_highlight_mapping(language: str) -> str:
    return LANGUAGE_ALIASES.get(language, language)


def highlight_code(code: str, language: str) -> str | None:
    """Pygments markup for `code`, or None when there is no lexer for `language`."""
    if not language:
        return None
    try:
        lexer = get_lexer_by_name(language)
    except ClassNotFound:
        return None
    return highlight(code, lexer, HtmlFormatter(nowrap=True))
