import pytest

from postpress import events as ev
from postpress.config import RawHtmlPolicy
from postpress.content import load_item
from postpress.errors import UnknownMarkdownEvent
from postpress.events import TagKind, markdown_events
from postpress.render import HtmlRenderer, code_block_languages, generate_html


def render(source: str, **kwargs) -> str:
    return "".join(HtmlRenderer(**kwargs).render(markdown_events(source)))


class TestBlocks:
    def test_heading_is_one_fragment(self):
        fragments = HtmlRenderer().render(markdown_events("# Title\n"))
        assert fragments == ['<h1 class="my-6 font-bold text-4xl">Title</h1>']

    def test_heading_sizes(self):
        assert '<h3 class="my-6 font-bold text-2xl">' in render("### Small\n")
        assert '<h6 class="my-6 font-bold text-md">' in render("###### Tiny\n")

    def test_paragraph_with_emphasis(self):
        fragments = HtmlRenderer().render(markdown_events("Hello *world* and **you**\n"))
        assert "".join(fragments) == (
            '<p class="my-1.5 text-justify">Hello <em class="italic">world</em>'
            ' and <strong class="font-bold">you</strong></p>\n'
        )
        assert fragments[-1] == "</p>\n"

    def test_lists(self):
        assert '<ul class="ml-4 pl-4 list-disc"><li>' in render("- a\n- b\n")
        assert '<ol class="ml-4 pl-4 list-decimal">' in render("1. a\n2. b\n")
        assert '<ol start="3" class="ml-4 pl-4 list-decimal">' in render("3. a\n4. b\n")

    def test_task_list_marker(self):
        html = render("- [x] done\n- [ ] todo\n")
        assert '<input type="checkbox" checked class="accent-yellow-600" />done' in html
        assert '<input type="checkbox" class="accent-yellow-600" />todo' in html

    def test_block_quote_and_rule(self):
        html = render("> quoted\n\n---\n")
        assert html.startswith('<blockquote class="p-4 my-4 border-l-8 border-solid border-gray-500 bg-gray-800">')
        assert html.endswith("</blockquote><hr />")

    def test_breaks(self):
        assert "one\ntwo<br />three" in render("one\ntwo  \nthree\n")


class TestInline:
    def test_text_is_escaped(self):
        assert "a &lt; b &amp; c" in render("a < b & c\n")

    def test_inline_code(self):
        assert render("`<b>`\n") == (
            '<p class="my-1.5 text-justify"><code class="font-mono bg-white text-black px-1 py-0.5">'
            "&lt;b&gt;</code></p>\n"
        )

    def test_link(self):
        html = render("[docs](https://e.test/?a=1&b=2)\n")
        assert '<a href="https://e.test/?a=1&amp;b=2" class="underline text-yellow-400 break-all">docs</a>' in html

    def test_image_alt_becomes_caption(self):
        html = render("![cats & dogs](cat.png)\n")
        assert '<img loading="lazy" src="cat.png" class="my-4" />' in html
        assert (
            '<blockquote class="p-4 mb-4 border-l-8 border-solid border-gray-500 bg-gray-800">cats &amp; dogs</blockquote>'
            in html
        )

    def test_trailing_markup_is_flushed(self):
        events = [ev.start(TagKind.IMAGE, dest_url="x.png"), ev.text("alt"), ev.end(TagKind.IMAGE)]
        fragments = HtmlRenderer().render(events)
        assert len(fragments) == 1
        assert fragments[0].startswith('<img loading="lazy" src="x.png"')


class TestCodeBlocks:
    def test_language_class_and_escaping(self):
        html = render("```html\n<p>x</p>\n```\n")
        assert html == (
            '<pre class="overflow-x-scroll font-mono bg-white text-black p-4"><code class="language-xml">'
            "&lt;p&gt;x&lt;/p&gt;\n</code></pre>"
        )

    def test_no_language(self):
        assert "<code>plain\n</code>" in render("```\nplain\n```\n")

    def test_highlighting(self):
        html = render("```python\ndef f():\n    pass\n```\n", highlight=True)
        assert '<span class="k">def</span>' in html

    def test_highlighting_unknown_language_falls_back(self):
        html = render("```nosuchlang\n<x>\n```\n", highlight=True)
        assert "&lt;x&gt;\n</code>" in html

    def test_collect_languages(self):
        source = "```python\na\n```\n\n```html\nb\n```\n\n```\nc\n```\n\n```python\nd\n```\n"
        assert code_block_languages(markdown_events(source)) == ["python", "xml"]


class TestTables:
    SOURCE = "| a | b |\n| --- | --: |\n| 1 | 2 |\n| 3 | 4 |\n"

    def test_structure(self):
        html = render(self.SOURCE)
        assert html.startswith('<div class="overflow-x-auto my-4"><div class="inline-block min-w-full align-middle">')
        assert html.count("<thead>") == 1
        assert html.count("<tbody") == 1
        assert html.count("<th ") == 2
        assert html.count("<td ") == 4
        assert html.endswith("</tbody></table></div></div>")

    def test_alignment_applies_to_every_row(self):
        html = render(self.SOURCE)
        assert html.count("text-right") == 3
        assert '<td class="px-3 py-4 text-sm whitespace-nowrap text-gray-300 text-right">2</td>' in html
        assert '<td class="px-3 py-4 text-sm whitespace-nowrap text-gray-300">1</td>' in html


class TestRawHtml:
    def test_passthrough(self):
        assert render("<div>hi</div>\n") == "<div>hi</div>\n"

    def test_drop(self):
        assert render("<div>hi</div>\n", raw_html=RawHtmlPolicy.DROP) == ""
        assert render("a <span>b</span>\n", raw_html=RawHtmlPolicy.DROP) == (
            '<p class="my-1.5 text-justify">a b</p>\n'
        )

    def test_component_without_item_renders_empty(self):
        assert render('<ImageGrid src="gallery" />\n') == ""

    def test_closing_tag_of_inline_component_is_dropped(self):
        assert render('<ImageGrid src="gallery"></ImageGrid>\n') == '<p class="my-1.5 text-justify"></p>\n'

    def test_unrelated_closing_tags_pass_through(self):
        html = render('<ImageGrid src="gallery"></ImageGrid> and <span>b</span>\n')
        assert html == '<p class="my-1.5 text-justify"> and <span>b</span></p>\n'


class TestEventHandling:
    def test_metadata_block_is_hidden(self):
        html = render('+++\ntitle = "Secret"\n+++\n\nBody\n')
        assert "Secret" not in html
        assert html == '<p class="my-1.5 text-justify">Body</p>\n'

    @pytest.mark.parametrize(
        "event",
        [
            ev.footnote_reference("1"),
            ev.start(TagKind.STRIKETHROUGH),
            ev.end(TagKind.FOOTNOTE_DEFINITION),
        ],
    )
    def test_unknown_event_aborts(self, event):
        renderer = HtmlRenderer()
        with pytest.raises(UnknownMarkdownEvent) as excinfo:
            renderer.render([ev.start(TagKind.PARAGRAPH), event])
        assert excinfo.value.event == event

        # state does not leak into the next document
        assert renderer.render(markdown_events("ok\n")) == ['<p class="my-1.5 text-justify">ok</p>\n']


def test_generate_html(write_post, config):
    path = write_post("2024-03-05-hello.md", "Hello", "2024-03-05T10:00:00+01:00[Europe/Paris]")
    html = generate_html(load_item(path), config)
    # fragments are joined with newlines
    assert html == '<p class="my-1.5 text-justify">Some <em class="italic">content</em>\n.</p>\n'
    assert "Hello" not in html
