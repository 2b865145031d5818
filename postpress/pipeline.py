from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from markdown_it import MarkdownIt

from .config import BuildConfig
from .content import ContentItem, link_navigation, scan_path
from .errors import ContentError, RenderError
from .events import markdown_events
from .feed import Feed, content_url, create_feed, render_atom
from .render import code_block_languages, generate_html
from .utils import join_url, rfc3339, write_text

logger = logging.getLogger(__name__)

FEED_FILENAME = "atom.xml"
MANIFEST_FILENAME = "manifest.json"
FRAGMENT_FILENAME = "index.html"


@dataclass
class BuildResult:
    config: BuildConfig
    items: list[ContentItem]
    html: dict[str, str]
    feed: Feed
    failures: list[ContentError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def render_items(
    items: Sequence[ContentItem], config: BuildConfig, parser: MarkdownIt | None = None
) -> tuple[dict[str, str], list[ContentError]]:
    """Render every item; results keep the order of `items`."""

    def render_one(item: ContentItem) -> str | ContentError:
        try:
            return generate_html(item, config, parser)
        except RenderError as exc:
            return ContentError(item.slug, exc)

    if config.workers > 1 and len(items) > 1:
        with ThreadPoolExecutor(max_workers=config.workers) as executor:
            results = list(executor.map(render_one, items))
    else:
        results = [render_one(item) for item in items]

    rendered: dict[str, str] = {}
    failures: list[ContentError] = []
    for item, result in zip(items, results):
        if isinstance(result, ContentError):
            if config.strict:
                raise result from result.cause
            logger.warning("Failed to process %s", result)
            failures.append(result)
            continue
        logger.info("Processed %s", item.slug)
        rendered[item.slug] = result
    return rendered, failures


def build(content_dir: Path, config: BuildConfig, parser: MarkdownIt | None = None) -> BuildResult:
    logger.debug("Building the following configuration: %r", config)
    scan = scan_path(content_dir, strict=config.strict)
    rendered, render_failures = render_items(scan.items, config, parser)
    # navigation and feed only point at pages that exist
    items = link_navigation([item for item in scan.items if item.slug in rendered])
    feed = create_feed(config, items)
    return BuildResult(
        config=config,
        items=items,
        html=rendered,
        feed=feed,
        failures=[*scan.failures, *render_failures],
    )


def build_manifest(result: BuildResult) -> dict:
    """Everything a page shell needs to wrap the rendered fragments."""
    config = result.config
    pages = []
    for item in result.items:
        pages.append(
            {
                "slug": item.slug,
                "title": item.metadata.title,
                "date": rfc3339(item.metadata.date),
                "url": content_url(config, item),
                "fragment": f"{item.slug}/{FRAGMENT_FILENAME}",
                "previous": item.previous,
                "next": item.next,
                "languages": code_block_languages(markdown_events(item.raw)),
            }
        )
    return {
        "generated": rfc3339(config.timestamp),
        "stylesheet": join_url(config.base_url, config.stylesheet_name),
        "feed": join_url(config.base_url, FEED_FILENAME),
        "pages": pages,
    }


def write_output(result: BuildResult, output_dir: Path) -> list[Path]:
    """Write one `<slug>/index.html` fragment file per item, the feed and the manifest."""
    written = []
    for slug, body in result.html.items():
        path = output_dir / slug / FRAGMENT_FILENAME
        write_text(path, body)
        written.append(path)
        logger.debug("wrote `%s`", path)

    feed_path = output_dir / FEED_FILENAME
    write_text(feed_path, render_atom(result.feed))
    written.append(feed_path)

    manifest_path = output_dir / MANIFEST_FILENAME
    write_text(manifest_path, json.dumps(build_manifest(result), indent=2, ensure_ascii=True))
    written.append(manifest_path)
    return written
