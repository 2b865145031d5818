"""Custom HTML components that can be embedded in markdown as raw HTML.

A line of its own in a post such as

    <ImageGrid src="gallery" />

is replaced with a grid of every image found under `gallery/` next to the
post. The paired form `<ImageGrid src="gallery"></ImageGrid>` also works;
the renderer drops the closing tag.
"""

from __future__ import annotations

import html
import logging
import re
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Callable, NamedTuple, Sequence

from bs4 import BeautifulSoup
from PIL import Image

from .utils import tw_join

if TYPE_CHECKING:
    from .content import ContentItem

logger = logging.getLogger(__name__)


class CustomComponent(NamedTuple):
    tag: str
    attribute: str
    process: Callable[["ContentItem | None", str], str]


def is_image(path: Path) -> bool:
    """Sniff the file content, the extension is not trusted."""
    try:
        with Image.open(path):
            return True
    except OSError:
        return False


def list_images(directory: Path, assets: Path) -> list[PurePosixPath]:
    if not directory.is_dir():
        return []
    images = []
    for path in directory.rglob("*"):
        if not path.is_file() or not is_image(path):
            continue
        try:
            images.append(PurePosixPath(path.relative_to(assets).as_posix()))
        except ValueError:
            continue
    return sorted(images)


def process_image_grid(item: "ContentItem | None", attribute: str) -> str:
    # without an asset bundle there is nothing to show
    if item is None or item.assets is None:
        return ""

    images = list_images(item.assets / attribute, item.assets)
    links = []
    for path in images:
        href = html.escape(path.as_posix())
        links.append(
            f'<a class="{tw_join("w-full", "h-full", "border-2", "border-dashed", "border-yellow-600")}" href="{href}">'
            f'<img loading="lazy" class="{tw_join("h-auto", "max-w-32")}" src="{href}" alt="{html.escape(path.name)}" />'
            "</a>"
        )
    return f'<div class="{tw_join("my-4", "grid", "grid-cols-2", "gap-5")}">{"".join(links)}</div>'


CUSTOM_COMPONENTS: tuple[CustomComponent, ...] = (
    CustomComponent(tag="ImageGrid", attribute="src", process=process_image_grid),
)

def find_component(
    chunk: str, components: Sequence[CustomComponent] = CUSTOM_COMPONENTS
) -> tuple[CustomComponent, str] | None:
    """First registered component present in a raw HTML chunk, with its attribute value."""
    dom = BeautifulSoup(chunk, "html.parser")
    for component in components:
        # the html parser lowercases tag and attribute names
        tag = dom.find(component.tag.lower())
        if tag is None:
            continue
        value = tag.get(component.attribute.lower())
        if value is None:
            continue
        if isinstance(value, list):
            value = " ".join(value)
        return component, value
    return None


def render_component(
    chunk: str,
    item: "ContentItem | None",
    components: Sequence[CustomComponent] = CUSTOM_COMPONENTS,
) -> str | None:
    """Render the first registered component found in a raw HTML chunk.

    Returns None when the chunk holds no registered component.
    """
    found = find_component(chunk, components)
    if found is None:
        return None
    component, value = found
    logger.debug("Rendering <%s %s=%r>", component.tag, component.attribute, value)
    return component.process(item, value)


def leaves_open(chunk: str, tag: str) -> bool:
    """True when `chunk` opens `tag` but neither self-closes nor closes it."""
    name = re.escape(tag)
    if re.search(rf"</\s*{name}\s*>", chunk, re.IGNORECASE):
        return False
    return re.search(rf"<{name}\b[^>]*/\s*>", chunk, re.IGNORECASE) is None


def is_closing_tag(chunk: str, tag: str) -> bool:
    return re.fullmatch(rf"\s*</\s*{re.escape(tag)}\s*>\s*", chunk, re.IGNORECASE) is not None
