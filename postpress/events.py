"""Markdown structural events.

Documents are parsed with markdown-it-py and flattened into a stream of
`Event` values: `START`/`END` pairs around block and inline constructs, and
leaf events for text, code, raw HTML, breaks and rules. The renderer and the
metadata extractor only ever see this stream, never markdown-it tokens.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence

from markdown_it import MarkdownIt
from markdown_it.rules_block import StateBlock
from markdown_it.token import Token

METADATA_FENCE = "+++"
TASK_MARKER_RE = re.compile(r"^\[([ xX])\](?:[ \t]+|$)")
ALIGN_STYLE_RE = re.compile(r"text-align:\s*(left|center|right)")


class EventKind(str, enum.Enum):
    START = "start"
    END = "end"
    TEXT = "text"
    CODE = "code"
    HTML = "html"
    INLINE_HTML = "inline_html"
    SOFT_BREAK = "soft_break"
    HARD_BREAK = "hard_break"
    RULE = "rule"
    TASK_LIST_MARKER = "task_list_marker"
    FOOTNOTE_REFERENCE = "footnote_reference"


class TagKind(str, enum.Enum):
    PARAGRAPH = "paragraph"
    HEADING = "heading"
    BLOCK_QUOTE = "block_quote"
    CODE_BLOCK = "code_block"
    HTML_BLOCK = "html_block"
    LIST = "list"
    ITEM = "item"
    TABLE = "table"
    TABLE_HEAD = "table_head"
    TABLE_ROW = "table_row"
    TABLE_CELL = "table_cell"
    EMPHASIS = "emphasis"
    STRONG = "strong"
    STRIKETHROUGH = "strikethrough"
    LINK = "link"
    IMAGE = "image"
    METADATA_BLOCK = "metadata_block"
    FOOTNOTE_DEFINITION = "footnote_definition"


class Alignment(str, enum.Enum):
    NONE = "none"
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


@dataclass(frozen=True)
class Tag:
    kind: TagKind
    level: int = 0
    ordered: bool = False
    start: int = 1
    language: str = ""
    dest_url: str = ""
    title: str = ""
    alignments: tuple[Alignment, ...] = ()


@dataclass(frozen=True)
class Event:
    kind: EventKind
    tag: Tag | None = None
    text: str = ""
    checked: bool = False

    def is_start(self, kind: TagKind) -> bool:
        return self.kind is EventKind.START and self.tag is not None and self.tag.kind is kind

    def is_end(self, kind: TagKind) -> bool:
        return self.kind is EventKind.END and self.tag is not None and self.tag.kind is kind


def start(kind: TagKind, **attrs) -> Event:
    return Event(EventKind.START, tag=Tag(kind, **attrs))


def end(kind: TagKind, **attrs) -> Event:
    return Event(EventKind.END, tag=Tag(kind, **attrs))


def text(value: str) -> Event:
    return Event(EventKind.TEXT, text=value)


def code(value: str) -> Event:
    return Event(EventKind.CODE, text=value)


def html(value: str) -> Event:
    return Event(EventKind.HTML, text=value)


def inline_html(value: str) -> Event:
    return Event(EventKind.INLINE_HTML, text=value)


def soft_break() -> Event:
    return Event(EventKind.SOFT_BREAK)


def hard_break() -> Event:
    return Event(EventKind.HARD_BREAK)


def rule() -> Event:
    return Event(EventKind.RULE)


def task_list_marker(checked: bool) -> Event:
    return Event(EventKind.TASK_LIST_MARKER, checked=checked)


def footnote_reference(label: str) -> Event:
    return Event(EventKind.FOOTNOTE_REFERENCE, text=label)


# --- markdown-it-py parser ---


def _line_text(state: StateBlock, line: int) -> str:
    return state.src[state.bMarks[line] + state.tShift[line] : state.eMarks[line]]


def metadata_block_rule(state: StateBlock, start_line: int, end_line: int, silent: bool) -> bool:
    """Block rule for a `+++` delimited metadata block opening the document."""
    if start_line != 0 or state.sCount[start_line] != 0:
        return False
    if _line_text(state, start_line).rstrip() != METADATA_FENCE:
        return False

    next_line = start_line + 1
    while next_line < end_line:
        if state.sCount[next_line] == 0 and _line_text(state, next_line).rstrip() == METADATA_FENCE:
            break
        next_line += 1
    else:
        # unterminated: not a metadata block
        return False

    if silent:
        return True

    token = state.push("metadata_block", "", 0)
    token.content = state.getLines(start_line + 1, next_line, 0, True)
    token.markup = METADATA_FENCE
    token.map = [start_line, next_line + 1]
    state.line = next_line + 1
    return True


def _render_nothing(self, tokens, idx, options, env) -> str:
    return ""


def create_parser() -> MarkdownIt:
    """CommonMark with tables, raw HTML and the `+++` metadata block."""
    md = MarkdownIt("commonmark", {"html": True}).enable("table")
    md.block.ruler.before("table", "metadata_block", metadata_block_rule)
    md.add_render_rule("metadata_block", _render_nothing)
    return md


_md = create_parser()


def _alignment(token: Token) -> Alignment:
    match = ALIGN_STYLE_RE.search(str(token.attrs.get("style", "")))
    if match is None:
        return Alignment.NONE
    return Alignment(match.group(1))


def _table_alignments(tokens: Sequence[Token], index: int) -> tuple[Alignment, ...]:
    alignments = []
    for token in tokens[index + 1 :]:
        if token.type == "th_open":
            alignments.append(_alignment(token))
        elif token.type == "tr_close":
            break
    return tuple(alignments)


def _inline_events(children: Sequence[Token], task_item: bool = False) -> Iterator[Event]:
    for position, token in enumerate(children):
        kind = token.type
        if kind in ("text", "text_special"):
            content = token.content
            if task_item and position == 0:
                marker = TASK_MARKER_RE.match(content)
                if marker is not None:
                    yield task_list_marker(marker.group(1) != " ")
                    content = content[marker.end() :]
            if content:
                yield text(content)
        elif kind == "softbreak":
            yield soft_break()
        elif kind == "hardbreak":
            yield hard_break()
        elif kind == "code_inline":
            yield code(token.content)
        elif kind == "html_inline":
            yield inline_html(token.content)
        elif kind in ("em_open", "em_close"):
            yield _pair(token, TagKind.EMPHASIS)
        elif kind in ("strong_open", "strong_close"):
            yield _pair(token, TagKind.STRONG)
        elif kind in ("s_open", "s_close"):
            yield _pair(token, TagKind.STRIKETHROUGH)
        elif kind == "link_open":
            yield start(
                TagKind.LINK,
                dest_url=str(token.attrs.get("href", "")),
                title=str(token.attrs.get("title", "")),
            )
        elif kind == "link_close":
            yield end(TagKind.LINK)
        elif kind == "image":
            yield start(
                TagKind.IMAGE,
                dest_url=str(token.attrs.get("src", "")),
                title=str(token.attrs.get("title", "")),
            )
            yield from _inline_events(token.children or [])
            yield end(TagKind.IMAGE)
        else:
            raise ValueError(f"Unsupported inline markdown token `{kind}`")


def _pair(token: Token, kind: TagKind) -> Event:
    return start(kind) if token.nesting == 1 else end(kind)


def _block_events(tokens: Sequence[Token]) -> Iterator[Event]:
    in_table_head = False
    pending_item = False

    for index, token in enumerate(tokens):
        kind = token.type
        task_item = pending_item
        pending_item = pending_item and kind == "paragraph_open"

        if kind == "metadata_block":
            yield start(TagKind.METADATA_BLOCK)
            if token.content:
                yield text(token.content)
            yield end(TagKind.METADATA_BLOCK)
        elif kind == "inline":
            yield from _inline_events(token.children or [], task_item=task_item)
        elif kind in ("paragraph_open", "paragraph_close"):
            # paragraphs of tight lists are hidden
            if not token.hidden:
                yield _pair(token, TagKind.PARAGRAPH)
        elif kind in ("heading_open", "heading_close"):
            level = int(token.tag[1:])
            yield start(TagKind.HEADING, level=level) if token.nesting == 1 else end(TagKind.HEADING, level=level)
        elif kind in ("blockquote_open", "blockquote_close"):
            yield _pair(token, TagKind.BLOCK_QUOTE)
        elif kind == "bullet_list_open":
            yield start(TagKind.LIST)
        elif kind == "bullet_list_close":
            yield end(TagKind.LIST)
        elif kind == "ordered_list_open":
            yield start(TagKind.LIST, ordered=True, start=int(token.attrs.get("start", 1)))
        elif kind == "ordered_list_close":
            yield end(TagKind.LIST, ordered=True)
        elif kind == "list_item_open":
            pending_item = True
            yield start(TagKind.ITEM)
        elif kind == "list_item_close":
            yield end(TagKind.ITEM)
        elif kind in ("code_block", "fence"):
            language = token.info.strip().split(maxsplit=1)[0] if token.info.strip() else ""
            yield start(TagKind.CODE_BLOCK, language=language)
            if token.content:
                yield text(token.content)
            yield end(TagKind.CODE_BLOCK, language=language)
        elif kind == "hr":
            yield rule()
        elif kind == "html_block":
            yield start(TagKind.HTML_BLOCK)
            yield html(token.content)
            yield end(TagKind.HTML_BLOCK)
        elif kind == "table_open":
            yield start(TagKind.TABLE, alignments=_table_alignments(tokens, index))
        elif kind == "table_close":
            yield end(TagKind.TABLE)
        elif kind == "thead_open":
            in_table_head = True
            yield start(TagKind.TABLE_HEAD)
        elif kind == "thead_close":
            in_table_head = False
            yield end(TagKind.TABLE_HEAD)
        elif kind in ("tbody_open", "tbody_close"):
            continue
        elif kind in ("tr_open", "tr_close"):
            # the head row is implied by the table head itself
            if not in_table_head:
                yield _pair(token, TagKind.TABLE_ROW)
        elif kind in ("th_open", "td_open", "th_close", "td_close"):
            yield _pair(token, TagKind.TABLE_CELL)
        else:
            raise ValueError(f"Unsupported markdown token `{kind}`")


def merge_text(events: Iterable[Event]) -> Iterator[Event]:
    """Join consecutive text events into one."""
    pending: list[str] = []
    for event in events:
        if event.kind is EventKind.TEXT:
            pending.append(event.text)
            continue
        if pending:
            yield text("".join(pending))
            pending = []
        yield event
    if pending:
        yield text("".join(pending))


def markdown_events(source: str, parser: MarkdownIt | None = None) -> Iterator[Event]:
    """Lazily produce the event stream of a markdown document.

    `parser` defaults to the shared instance from `create_parser`. A parser
    with more rules enabled may emit events the renderer rejects.
    """
    return merge_text(_block_events((parser or _md).parse(source)))


def render_plain_html(source: str) -> str:
    """Unstyled HTML for consumers that do not load the site stylesheet."""
    return _md.render(source)
