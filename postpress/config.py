from __future__ import annotations

import datetime as dt
import enum
import json
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from .errors import ConfigError
from .utils import parse_bool, parse_int, round_to_second

try:
    import tomllib as toml
except ImportError:
    try:
        import tomli as toml
    except ImportError:  # pragma: no cover - optional dependency
        toml = None

try:
    import yaml
except ImportError:  # pragma: no cover - optional dependency
    yaml = None

PACKAGE_NAME = "postpress"
PACKAGE_VERSION = "0.3.0"
CONFIG_VERSION = 1


class RawHtmlPolicy(str, enum.Enum):
    """What happens to raw HTML chunks that contain no custom component."""

    PASSTHROUGH = "passthrough"
    DROP = "drop"


def _now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


@dataclass(frozen=True)
class BuildConfig:
    """Settings shared by every stage of a build.

    A single instance is created per run and handed to each component that
    needs it.
    """

    base_url: str
    feed_uuid: uuid.UUID
    title: str
    subtitle: str = ""
    lang: str = "en"
    author_name: str = ""
    author_uri: str = ""
    generator_uri: str = ""
    timestamp: dt.datetime = field(default_factory=_now)
    stylesheet_name: str = "style.css"
    raw_html: RawHtmlPolicy = RawHtmlPolicy.PASSTHROUGH
    strict: bool = False
    highlight_code: bool = False
    workers: int = 1
    version: int = CONFIG_VERSION

    def __post_init__(self) -> None:
        if not self.base_url.endswith("/"):
            raise ConfigError("A trailing slash `/` is required at the end of the base url")
        if self.timestamp.tzinfo is None:
            raise ConfigError("Build timestamp must be timezone-aware")
        if self.workers < 1:
            raise ConfigError(f"At least one worker is required, got {self.workers}")
        if self.version != CONFIG_VERSION:
            raise ConfigError(f"Unsupported config version {self.version}")
        object.__setattr__(self, "timestamp", round_to_second(self.timestamp))
        object.__setattr__(self, "raw_html", RawHtmlPolicy(self.raw_html))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], **overrides: Any) -> "BuildConfig":
        values = {key: value for key, value in data.items() if value is not None}
        values.update({key: value for key, value in overrides.items() if value is not None})

        missing = [key for key in ("base_url", "feed_uuid", "title") if not values.get(key)]
        if missing:
            raise ConfigError(f"Missing required config keys: {', '.join(missing)}")

        try:
            feed_uuid = uuid.UUID(str(values["feed_uuid"]))
        except ValueError as exc:
            raise ConfigError(f"Invalid feed_uuid `{values['feed_uuid']}`: {exc}") from exc

        try:
            raw_html = RawHtmlPolicy(values.get("raw_html", RawHtmlPolicy.PASSTHROUGH))
        except ValueError as exc:
            raise ConfigError(f"Unknown raw_html policy `{values.get('raw_html')}`") from exc

        return cls(
            base_url=str(values["base_url"]),
            feed_uuid=feed_uuid,
            title=str(values["title"]),
            subtitle=str(values.get("subtitle", "")),
            lang=str(values.get("lang", "en")),
            author_name=str(values.get("author_name", "")),
            author_uri=str(values.get("author_uri", "")),
            generator_uri=str(values.get("generator_uri", "")),
            stylesheet_name=str(values.get("stylesheet_name", "style.css")),
            raw_html=raw_html,
            strict=parse_bool(values.get("strict", False)),
            highlight_code=parse_bool(values.get("highlight_code", False)),
            workers=max(1, parse_int(values.get("workers"), 1)),
            version=parse_int(values.get("version"), CONFIG_VERSION),
        )


def load_config(path: Path) -> dict:
    if not path.exists():
        return {}
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix == ".toml":
        if toml is None:
            raise ConfigError("TOML config requires tomllib (Python 3.11+) or tomli.")
        try:
            data = toml.loads(text)
        except toml.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in config file {path}: {exc}") from exc
        return data
    if suffix in {".yml", ".yaml"}:
        if yaml is None:
            raise ConfigError("YAML config requires PyYAML.")
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in config file {path}: {exc}") from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"YAML config must be a mapping: {path}")
        return data
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"JSON config must be a mapping: {path}")
    return data
