from __future__ import annotations

import datetime as dt
import enum
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Iterable, NamedTuple

from . import errors
from .events import markdown_events
from .metadata import Metadata, get_slug

logger = logging.getLogger(__name__)

INDEX_STEM = "index"
CONTENT_SUFFIX = ".md"


class IdentityKind(str, enum.Enum):
    STANDALONE = "standalone"
    WITH_ASSETS = "with_assets"


class Identity(NamedTuple):
    kind: IdentityKind
    name: str

    def __str__(self) -> str:
        return self.name


def _as_text(name: str) -> str | None:
    # undecodable bytes in a filename come back as lone surrogates
    if not name:
        return None
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        return None
    return name


def resolve_identity(path: Path) -> Identity:
    stem = _as_text(path.stem)
    if stem is None:
        raise errors.InvalidFilename(path)
    if stem != INDEX_STEM:
        return Identity(IdentityKind.STANDALONE, stem)

    folder = _as_text(path.parent.stem)
    if folder is None:
        raise errors.InvalidParentDirectory(path)
    return Identity(IdentityKind.WITH_ASSETS, folder)


@dataclass(frozen=True)
class ContentItem:
    path: Path
    raw: str
    metadata: Metadata
    identity: Identity
    slug: str
    assets: Path | None = None
    previous: str | None = None
    next: str | None = None


def load_item(path: Path) -> ContentItem:
    raw = path.read_text(encoding="utf-8")
    metadata = Metadata.from_events(markdown_events(raw))
    identity = resolve_identity(path)
    slug = get_slug(identity.name, metadata.date)
    assets = path.parent if identity.kind is IdentityKind.WITH_ASSETS else None
    return ContentItem(
        path=path,
        raw=raw,
        metadata=metadata,
        identity=identity,
        slug=slug,
        assets=assets,
    )


def list_content_files(root: Path) -> list[Path]:
    if not root.exists():
        return []
    files = [path for path in root.rglob(f"*{CONTENT_SUFFIX}") if path.is_file()]
    return sorted(files, key=lambda p: p.as_posix())


def sort_desc(items: Iterable[ContentItem]) -> list[ContentItem]:
    """Newest first; items sharing a date keep their relative order."""
    return sorted(items, key=lambda item: item.metadata.date.astimezone(dt.timezone.utc), reverse=True)


def link_navigation(items: list[ContentItem]) -> list[ContentItem]:
    """Point each item at its newer (`previous`) and older (`next`) neighbour."""
    linked = []
    for index, item in enumerate(items):
        previous = items[index - 1].slug if index > 0 else None
        following = items[index + 1].slug if index + 1 < len(items) else None
        linked.append(replace(item, previous=previous, next=following))
    return linked


class ScanResult(NamedTuple):
    items: list[ContentItem]
    failures: list[errors.ContentError]


def scan_path(root: Path, strict: bool = False) -> ScanResult:
    items = []
    failures = []
    for path in list_content_files(root):
        try:
            item = load_item(path)
        except (errors.PostpressError, OSError, UnicodeDecodeError) as exc:
            failure = errors.ContentError(path, exc)
            if strict:
                raise failure from exc
            logger.warning("Skipping %s", failure)
            failures.append(failure)
            continue
        logger.debug("Loaded %s as `%s`", path, item.slug)
        items.append(item)

    return ScanResult(link_navigation(sort_desc(items)), failures)
