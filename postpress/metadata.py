"""Metadata block parsing and slug validation.

A document starts with a `+++` block of `key = value` lines:

    +++
    title = "Hello world"
    date = 2024-03-05T10:00:00+01:00[Europe/Paris]
    uuid = "0e9a1c5e-6d4b-4a87-9d4c-3f1c2a7e8b10"
    +++

The date of that block must agree with the `YYYY-MM-DD-` prefix of the
content id (the file or folder name), which is how a renamed folder is caught
before it silently changes a publish date.
"""

from __future__ import annotations

import datetime as dt
import logging
import re
import uuid
from dataclasses import dataclass
from typing import Iterable, NamedTuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from . import errors
from .events import Event, EventKind, TagKind
from .utils import slugify

logger = logging.getLogger(__name__)

TAG_TITLE = "title"
TAG_DATE = "date"
TAG_UUID = "uuid"
REQUIRED_TAGS = (TAG_TITLE, TAG_DATE, TAG_UUID)

ZONED_RE = re.compile(r"^(?P<datetime>[^\[\]]+)\[(?P<zone>[^\[\]]+)\]$")

MetadataValue = Union[str, dt.datetime, uuid.UUID]


class MetadataEntry(NamedTuple):
    key: str
    value: MetadataValue


def parse_zoned(value: str) -> dt.datetime:
    """Parse `2024-03-05T10:00:00+01:00[Europe/Paris]` into an aware datetime.

    The IANA zone annotation is required. A numeric offset is optional but,
    when present, must be the offset the zone actually has at that time.
    """
    match = ZONED_RE.match(value.strip())
    if match is None:
        raise ValueError(f"`{value}` has no time zone annotation such as `[Europe/Paris]`")

    try:
        zone = ZoneInfo(match.group("zone"))
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"unknown time zone `{match.group('zone')}`") from exc

    stamp = match.group("datetime").strip()
    if stamp[-1:] in ("Z", "z"):
        # `Z` fixes the instant in UTC, the zone only supplies the local time
        instant = dt.datetime.fromisoformat(stamp[:-1] + "+00:00")
        return instant.astimezone(zone)
    parsed = dt.datetime.fromisoformat(stamp)
    local = parsed.replace(tzinfo=None)
    if parsed.tzinfo is None:
        return local.replace(tzinfo=zone)

    for fold in (0, 1):
        candidate = local.replace(tzinfo=zone, fold=fold)
        if candidate.utcoffset() == parsed.utcoffset():
            return candidate
    raise ValueError(f"offset of `{match.group('datetime')}` does not match time zone `{zone.key}`")


def parse_line(line: str) -> MetadataEntry:
    key, sep, value = line.partition("=")
    if not sep:
        raise errors.NoDelimiter(line)

    key = key.strip()
    value = value.strip()
    name = key.lower()

    if name == TAG_TITLE:
        return MetadataEntry(TAG_TITLE, value.strip('"'))
    if name == TAG_DATE:
        try:
            return MetadataEntry(TAG_DATE, parse_zoned(value.strip('"')))
        except ValueError as exc:
            raise errors.MetadataValueError(key, exc) from exc
    if name == TAG_UUID:
        try:
            return MetadataEntry(TAG_UUID, uuid.UUID(value.strip('"')))
        except ValueError as exc:
            raise errors.MetadataValueError(key, exc) from exc
    raise errors.UnknownTag(key)


def parse_metadata_block(events: Iterable[Event]) -> list[MetadataEntry]:
    """Collect the entries of the first metadata block of an event stream."""
    entries: list[MetadataEntry] = []
    inside = False
    for event in events:
        if event.is_start(TagKind.METADATA_BLOCK):
            inside = True
        elif event.is_end(TagKind.METADATA_BLOCK):
            break
        elif inside and event.kind is EventKind.TEXT:
            for line in event.text.splitlines():
                if not line.strip():
                    continue
                logger.debug("Metadata: parsing `%s`", line)
                entries.append(parse_line(line))
    return entries


@dataclass(frozen=True)
class Metadata:
    title: str
    date: dt.datetime
    uuid: uuid.UUID

    @classmethod
    def from_entries(cls, entries: Iterable[MetadataEntry]) -> "Metadata":
        found: dict[str, MetadataValue] = {}
        for entry in entries:
            if entry.key in found:
                raise errors.DuplicateMetadata(entry.key)
            found[entry.key] = entry.value
        for key in REQUIRED_TAGS:
            if key not in found:
                raise errors.MissingMetadata(key)
        return cls(title=found[TAG_TITLE], date=found[TAG_DATE], uuid=found[TAG_UUID])

    @classmethod
    def from_events(cls, events: Iterable[Event]) -> "Metadata":
        return cls.from_entries(parse_metadata_block(events))


def _date_part(part: str | None, missing: type, convert: type, identity: str) -> int:
    if part is None:
        raise missing(identity)
    if not (part.isascii() and part.isdigit()):
        raise convert(identity)
    return int(part)


def get_slug(identity: str, date: dt.datetime) -> str:
    """Check the `YYYY-MM-DD-` prefix of `identity` against `date`, slugify the rest."""
    part = iter(identity.split("-"))

    year = _date_part(next(part, None), errors.NoYear, errors.ConvertYear, identity)
    if year != date.year:
        raise errors.YearMismatch(identity)

    month = _date_part(next(part, None), errors.NoMonth, errors.ConvertMonth, identity)
    if month != date.month:
        raise errors.MonthMismatch(identity)

    day = _date_part(next(part, None), errors.NoDay, errors.ConvertDay, identity)
    if day != date.day:
        raise errors.DayMismatch(identity)

    slug = slugify("-".join(part))
    if not slug:
        raise errors.EmptySlug(identity)
    return slug
