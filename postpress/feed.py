"""Atom feed of the published content."""

from __future__ import annotations

import datetime as dt
import hashlib
import uuid
from dataclasses import dataclass, field
from typing import Sequence
from xml.etree.ElementTree import Element, SubElement, tostring

from .config import PACKAGE_NAME, PACKAGE_VERSION, BuildConfig
from .content import ContentItem
from .events import render_plain_html
from .utils import join_url, rfc3339

ATOM_NS = "http://www.w3.org/2005/Atom"
XML_LANG = "{http://www.w3.org/XML/1998/namespace}lang"


@dataclass(frozen=True)
class Link:
    href: str
    rel: str | None = None
    mime_type: str | None = None


@dataclass(frozen=True)
class Person:
    name: str
    uri: str | None = None


@dataclass(frozen=True)
class Generator:
    value: str
    uri: str | None = None
    version: str | None = None


@dataclass(frozen=True)
class FeedEntry:
    id: str
    title: str
    published: dt.datetime
    updated: dt.datetime
    link: Link
    content: str
    lang: str | None = None
    author: Person | None = None


@dataclass(frozen=True)
class Feed:
    id: str
    title: str
    subtitle: str = ""
    lang: str | None = None
    updated: dt.datetime | None = None
    links: tuple[Link, ...] = ()
    generator: Generator | None = None
    author: Person | None = None
    entries: tuple[FeedEntry, ...] = field(default_factory=tuple)


def entry_id(feed_uuid: uuid.UUID, content_uuid: uuid.UUID) -> str:
    """Name-based (v5) UUID of a content UUID inside the feed's namespace.

    The name is the 16 raw bytes of the content UUID.
    """
    digest = hashlib.sha1(feed_uuid.bytes + content_uuid.bytes).digest()
    return f"urn:uuid:{uuid.UUID(bytes=digest[:16], version=5)}"


def content_url(config: BuildConfig, item: ContentItem) -> str:
    return join_url(config.base_url, f"{item.slug}/")


def feed_html(item: ContentItem, config: BuildConfig) -> str:
    """Plain HTML of an item, with a pointer to the styled page."""
    disclaimer = (
        "\n\n[If the formatting of this post looks odd in your feed reader, "
        f"[visit the original article]({content_url(config, item)})]\n"
    )
    return render_plain_html(item.raw + disclaimer)


def create_feed(config: BuildConfig, items: Sequence[ContentItem]) -> Feed:
    author = Person(config.author_name, config.author_uri or None) if config.author_name else None

    entries = []
    for item in items:
        date = item.metadata.date
        entries.append(
            FeedEntry(
                id=entry_id(config.feed_uuid, item.metadata.uuid),
                title=item.metadata.title,
                published=date,
                updated=date,
                link=Link(content_url(config, item), mime_type="text/html"),
                content=feed_html(item, config),
                lang=config.lang,
                author=author,
            )
        )

    updated = max(
        (item.metadata.date for item in items),
        key=lambda date: date.astimezone(dt.timezone.utc),
        default=None,
    )

    return Feed(
        id=f"urn:uuid:{config.feed_uuid}",
        title=config.title,
        subtitle=config.subtitle,
        lang=config.lang,
        updated=updated,
        links=(
            Link(join_url(config.base_url, "atom.xml"), rel="self", mime_type="application/atom+xml"),
            Link(config.base_url, mime_type="text/html"),
        ),
        generator=Generator(PACKAGE_NAME, uri=config.generator_uri or None, version=PACKAGE_VERSION),
        author=author,
        entries=tuple(entries),
    )


def _link(parent: Element, link: Link) -> None:
    attrib = {"href": link.href}
    if link.rel:
        attrib["rel"] = link.rel
    if link.mime_type:
        attrib["type"] = link.mime_type
    SubElement(parent, "link", attrib=attrib)


def _person(parent: Element, tag: str, person: Person) -> None:
    person_el = SubElement(parent, tag)
    SubElement(person_el, "name").text = person.name
    if person.uri:
        SubElement(person_el, "uri").text = person.uri


def render_atom(feed: Feed) -> str:
    root = Element("feed", attrib={"xmlns": ATOM_NS})
    if feed.lang:
        root.set(XML_LANG, feed.lang)
    SubElement(root, "id").text = feed.id
    SubElement(root, "title").text = feed.title
    if feed.subtitle:
        SubElement(root, "subtitle").text = feed.subtitle
    if feed.updated is not None:
        SubElement(root, "updated").text = rfc3339(feed.updated)
    for link in feed.links:
        _link(root, link)
    if feed.generator is not None:
        attrib = {}
        if feed.generator.uri:
            attrib["uri"] = feed.generator.uri
        if feed.generator.version:
            attrib["version"] = feed.generator.version
        SubElement(root, "generator", attrib=attrib).text = feed.generator.value
    if feed.author is not None:
        _person(root, "author", feed.author)

    for entry in feed.entries:
        entry_el = SubElement(root, "entry")
        SubElement(entry_el, "id").text = entry.id
        SubElement(entry_el, "title").text = entry.title
        SubElement(entry_el, "updated").text = rfc3339(entry.updated)
        SubElement(entry_el, "published").text = rfc3339(entry.published)
        if entry.author is not None:
            _person(entry_el, "author", entry.author)
        _link(entry_el, entry.link)
        content_el = SubElement(entry_el, "content", attrib={"type": "html"})
        if entry.lang:
            content_el.set(XML_LANG, entry.lang)
        content_el.text = entry.content

    return "<?xml version='1.0' encoding='UTF-8'?>\n" + tostring(root, encoding="unicode")
