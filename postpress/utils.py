from __future__ import annotations

import datetime as dt
import re
import unicodedata
from pathlib import Path

SLUG_SEPARATOR_RE = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    text = SLUG_SEPARATOR_RE.sub("-", text.lower())
    return text.strip("-")


def tw_join(*classes: str) -> str:
    return " ".join(name for name in classes if name)


def parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "on"}
    return False


def parse_int(value: object, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def join_url(base: str, path: str) -> str:
    base = base.rstrip("/")
    path = path.lstrip("/")
    if not path:
        return f"{base}/"
    return f"{base}/{path}"


def rfc3339(value: dt.datetime) -> str:
    """Format an aware datetime as `2024-03-05T10:00:00+01:00`."""
    return value.isoformat(timespec="seconds")


def round_to_second(value: dt.datetime) -> dt.datetime:
    rounded = value.replace(microsecond=0)
    if value.microsecond >= 500_000:
        rounded += dt.timedelta(seconds=1)
    return rounded


def write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
