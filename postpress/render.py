"""Styled HTML generation from the markdown event stream.

The renderer walks the events once and keeps a small amount of state for the
constructs that span several events (tables, images, code blocks). Output is
a list of fragments; each closing block or inline construct ends a fragment.
An event the renderer does not know about aborts the whole document with
`UnknownMarkdownEvent`.
"""

from __future__ import annotations

import enum
import html
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Sequence

from markdown_it import MarkdownIt

from .components import CUSTOM_COMPONENTS, CustomComponent, find_component, is_closing_tag, leaves_open
from .config import BuildConfig, RawHtmlPolicy
from .content import ContentItem
from .errors import UnknownMarkdownEvent
from .events import Alignment, Event, EventKind, TagKind, markdown_events
from .highlight import highlight_code, syntax_highlight_mapping
from .utils import tw_join

logger = logging.getLogger(__name__)

HEADING_SIZES = {1: "text-4xl", 2: "text-3xl", 3: "text-2xl", 4: "text-xl", 5: "text-lg", 6: "text-md"}
ALIGNMENT_CLASSES = {
    Alignment.LEFT: "text-left",
    Alignment.CENTER: "text-center",
    Alignment.RIGHT: "text-right",
}
QUOTE_CLASSES = ("border-l-8", "border-solid", "border-gray-500", "bg-gray-800")
HEAD_CELL_CLASS = tw_join("px-3", "py-3.5", "text-left", "text-sm", "font-semibold", "text-white")
BODY_CELL_CLASS = tw_join("px-3", "py-4", "text-sm", "whitespace-nowrap", "text-gray-300")


def escape_text(value: str) -> str:
    return html.escape(value, quote=False)


def escape_attr(value: str) -> str:
    return html.escape(value, quote=True)


class TablePhase(enum.Enum):
    HEAD = "head"
    BODY = "body"


@dataclass
class RenderState:
    ignore: bool = False
    table_alignment: tuple[Alignment, ...] = ()
    table_cell_idx: int = 0
    table_phase: TablePhase = TablePhase.HEAD
    inside_image: bool = False
    code_language: str | None = None
    open_component: str | None = None
    current: list[str] = field(default_factory=list)
    fragments: list[str] = field(default_factory=list)

    def push(self, markup: str) -> None:
        self.current.append(markup)

    def flush(self) -> None:
        self.fragments.append("".join(self.current))
        self.current.clear()

    def push_fragment(self, markup: str) -> None:
        self.push(markup)
        self.flush()


Handler = Callable[[RenderState, Event], None]


class HtmlRenderer:
    def __init__(
        self,
        item: ContentItem | None = None,
        raw_html: RawHtmlPolicy = RawHtmlPolicy.PASSTHROUGH,
        highlight: bool = False,
        components: Sequence[CustomComponent] = CUSTOM_COMPONENTS,
    ) -> None:
        self.item = item
        self.raw_html = raw_html
        self.highlight = highlight
        self.components = components

        self._start: dict[TagKind, Handler] = {
            TagKind.HEADING: self._start_heading,
            TagKind.PARAGRAPH: self._start_paragraph,
            TagKind.IMAGE: self._start_image,
            TagKind.LINK: self._start_link,
            TagKind.LIST: self._start_list,
            TagKind.ITEM: self._opener("<li>"),
            TagKind.EMPHASIS: self._opener(f'<em class="{tw_join("italic")}">'),
            TagKind.STRONG: self._opener(f'<strong class="{tw_join("font-bold")}">'),
            TagKind.CODE_BLOCK: self._start_code_block,
            TagKind.TABLE: self._start_table,
            TagKind.TABLE_HEAD: self._start_table_head,
            TagKind.TABLE_ROW: self._start_table_row,
            TagKind.TABLE_CELL: self._start_table_cell,
            TagKind.BLOCK_QUOTE: self._opener(f'<blockquote class="{tw_join("p-4", "my-4", *QUOTE_CLASSES)}">'),
            TagKind.HTML_BLOCK: self._noop,
        }
        self._end: dict[TagKind, Handler] = {
            TagKind.HEADING: self._end_heading,
            TagKind.PARAGRAPH: self._closer("</p>\n"),
            TagKind.IMAGE: self._end_image,
            TagKind.LINK: self._closer("</a>"),
            TagKind.LIST: self._end_list,
            TagKind.ITEM: self._closer("</li>"),
            TagKind.EMPHASIS: self._closer("</em>"),
            TagKind.STRONG: self._closer("</strong>"),
            TagKind.CODE_BLOCK: self._end_code_block,
            TagKind.TABLE: self._closer("</tbody></table></div></div>"),
            TagKind.TABLE_HEAD: self._end_table_head,
            TagKind.TABLE_ROW: self._closer("</tr>"),
            TagKind.TABLE_CELL: self._end_table_cell,
            TagKind.BLOCK_QUOTE: self._closer("</blockquote>"),
            TagKind.HTML_BLOCK: self._noop,
        }
        self._leaf: dict[EventKind, Handler] = {
            EventKind.TEXT: self._text,
            EventKind.CODE: self._code,
            EventKind.HTML: self._raw_html,
            EventKind.INLINE_HTML: self._raw_html,
            EventKind.SOFT_BREAK: self._closer("\n"),
            EventKind.HARD_BREAK: self._closer("<br />"),
            EventKind.RULE: self._closer("<hr />"),
            EventKind.TASK_LIST_MARKER: self._task_list_marker,
        }

    @classmethod
    def for_item(cls, item: ContentItem, config: BuildConfig) -> "HtmlRenderer":
        return cls(item=item, raw_html=config.raw_html, highlight=config.highlight_code)

    def render(self, events: Iterable[Event]) -> list[str]:
        state = RenderState()
        for event in events:
            if event.is_start(TagKind.METADATA_BLOCK):
                state.ignore = True
                continue
            if event.is_end(TagKind.METADATA_BLOCK):
                state.ignore = False
                continue
            if state.ignore:
                continue
            self._handler(event)(state, event)
        if state.current:
            state.flush()
        return state.fragments

    def _handler(self, event: Event) -> Handler:
        handler = None
        if event.kind is EventKind.START and event.tag is not None:
            handler = self._start.get(event.tag.kind)
        elif event.kind is EventKind.END and event.tag is not None:
            handler = self._end.get(event.tag.kind)
        else:
            handler = self._leaf.get(event.kind)
        if handler is None:
            raise UnknownMarkdownEvent(event)
        return handler

    # --- generic ---

    @staticmethod
    def _noop(state: RenderState, event: Event) -> None:
        pass

    @staticmethod
    def _opener(markup: str) -> Handler:
        def handler(state: RenderState, event: Event) -> None:
            state.push(markup)

        return handler

    @staticmethod
    def _closer(markup: str) -> Handler:
        def handler(state: RenderState, event: Event) -> None:
            state.push_fragment(markup)

        return handler

    # --- text ---

    def _text(self, state: RenderState, event: Event) -> None:
        if state.inside_image:
            state.push(
                f'<blockquote class="{tw_join("p-4", "mb-4", *QUOTE_CLASSES)}">{escape_text(event.text)}</blockquote>'
            )
        elif state.code_language is not None:
            highlighted = highlight_code(event.text, state.code_language) if self.highlight else None
            state.push(highlighted if highlighted is not None else escape_text(event.text))
        else:
            state.push(escape_text(event.text))

    @staticmethod
    def _code(state: RenderState, event: Event) -> None:
        state.push_fragment(
            f'<code class="{tw_join("font-mono", "bg-white", "text-black", "px-1", "py-0.5")}">'
            f"{escape_text(event.text)}</code>"
        )

    @staticmethod
    def _task_list_marker(state: RenderState, event: Event) -> None:
        checked = " checked" if event.checked else ""
        state.push_fragment(f'<input type="checkbox"{checked} class="{tw_join("accent-yellow-600")}" />')

    # --- headings, paragraphs, lists ---

    @staticmethod
    def _start_heading(state: RenderState, event: Event) -> None:
        level = event.tag.level
        size = HEADING_SIZES.get(level, "text-md")
        state.push(f'<h{level} class="{tw_join("my-6", "font-bold", size)}">')

    @staticmethod
    def _end_heading(state: RenderState, event: Event) -> None:
        state.push_fragment(f"</h{event.tag.level}>")

    @staticmethod
    def _start_paragraph(state: RenderState, event: Event) -> None:
        state.push(f'<p class="{tw_join("my-1.5", "text-justify")}">')

    @staticmethod
    def _start_list(state: RenderState, event: Event) -> None:
        tag = event.tag
        if tag.ordered:
            start = f' start="{tag.start}"' if tag.start != 1 else ""
            state.push(f'<ol{start} class="{tw_join("ml-4", "pl-4", "list-decimal")}">')
        else:
            state.push(f'<ul class="{tw_join("ml-4", "pl-4", "list-disc")}">')

    @staticmethod
    def _end_list(state: RenderState, event: Event) -> None:
        state.push_fragment("</ol>" if event.tag.ordered else "</ul>")

    # --- links and images ---

    @staticmethod
    def _start_link(state: RenderState, event: Event) -> None:
        state.push(
            f'<a href="{escape_attr(event.tag.dest_url)}" '
            f'class="{tw_join("underline", "text-yellow-400", "break-all")}">'
        )

    @staticmethod
    def _start_image(state: RenderState, event: Event) -> None:
        state.inside_image = True
        state.push(f'<img loading="lazy" src="{escape_attr(event.tag.dest_url)}" class="{tw_join("my-4")}" />')

    @staticmethod
    def _end_image(state: RenderState, event: Event) -> None:
        state.inside_image = False

    # --- code blocks ---

    @staticmethod
    def _start_code_block(state: RenderState, event: Event) -> None:
        language = event.tag.language
        state.code_language = language
        language_class = f' class="language-{escape_attr(syntax_highlight_mapping(language))}"' if language else ""
        state.push(
            f'<pre class="{tw_join("overflow-x-scroll", "font-mono", "bg-white", "text-black", "p-4")}">'
            f"<code{language_class}>"
        )

    @staticmethod
    def _end_code_block(state: RenderState, event: Event) -> None:
        state.code_language = None
        state.push_fragment("</code></pre>")

    # --- tables ---

    @staticmethod
    def _start_table(state: RenderState, event: Event) -> None:
        state.table_alignment = event.tag.alignments
        state.push(f'<div class="{tw_join("overflow-x-auto", "my-4")}">')
        state.push(f'<div class="{tw_join("inline-block", "min-w-full", "align-middle")}">')
        state.push(f'<table class="{tw_join("min-w-full", "divide-y", "divide-gray-700")}">')

    @staticmethod
    def _start_table_head(state: RenderState, event: Event) -> None:
        state.table_phase = TablePhase.HEAD
        state.table_cell_idx = 0
        state.push("<thead><tr>")

    @staticmethod
    def _end_table_head(state: RenderState, event: Event) -> None:
        state.push("</tr></thead>")
        state.push_fragment(f'<tbody class="{tw_join("divide-y", "divide-gray-800")}">')
        state.table_phase = TablePhase.BODY

    @staticmethod
    def _start_table_row(state: RenderState, event: Event) -> None:
        state.table_cell_idx = 0
        state.push("<tr>")

    @staticmethod
    def _start_table_cell(state: RenderState, event: Event) -> None:
        if state.table_phase is TablePhase.HEAD:
            element, phase_class = "th", HEAD_CELL_CLASS
        else:
            element, phase_class = "td", BODY_CELL_CLASS
        alignment = Alignment.NONE
        if state.table_cell_idx < len(state.table_alignment):
            alignment = state.table_alignment[state.table_cell_idx]
        state.push(f'<{element} class="{tw_join(phase_class, ALIGNMENT_CLASSES.get(alignment, ""))}">')

    @staticmethod
    def _end_table_cell(state: RenderState, event: Event) -> None:
        element = "th" if state.table_phase is TablePhase.HEAD else "td"
        state.table_cell_idx += 1
        state.push_fragment(f"</{element}>")

    # --- raw html ---

    def _raw_html(self, state: RenderState, event: Event) -> None:
        if state.open_component is not None and is_closing_tag(event.text, state.open_component):
            state.open_component = None
            return

        found = find_component(event.text, self.components)
        if found is not None:
            component, value = found
            logger.debug("Rendering <%s %s=%r>", component.tag, component.attribute, value)
            state.push_fragment(component.process(self.item, value))
            # an inline `<Tag ...>` arrives apart from its `</Tag>`
            if leaves_open(event.text, component.tag):
                state.open_component = component.tag
        elif self.raw_html is RawHtmlPolicy.PASSTHROUGH:
            state.push_fragment(event.text)
        else:
            logger.debug("Dropping raw HTML chunk %r", event.text)


def generate_html(item: ContentItem, config: BuildConfig, parser: MarkdownIt | None = None) -> str:
    fragments = HtmlRenderer.for_item(item, config).render(markdown_events(item.raw, parser))
    return "\n".join(fragments)


def code_block_languages(events: Iterable[Event]) -> list[str]:
    """Distinct languages of fenced code blocks, in order of appearance."""
    languages: list[str] = []
    for event in events:
        if event.is_start(TagKind.CODE_BLOCK) and event.tag.language:
            language = syntax_highlight_mapping(event.tag.language)
            if language not in languages:
                languages.append(language)
    return languages
