"""Shared fixtures: build configuration and on-disk content trees."""

from __future__ import annotations

import datetime as dt
import uuid
from pathlib import Path

import pytest

from postpress.config import BuildConfig

FEED_UUID = uuid.UUID("5b0d3a2e-64f1-4c3b-9a51-1d2f6e8c7a90")


def post_source(title: str, date: str, content_uuid: str, body: str = "Some *content*.") -> str:
    return f'+++\ntitle = "{title}"\ndate = {date}\nuuid = "{content_uuid}"\n+++\n\n{body}\n'


@pytest.fixture
def config() -> BuildConfig:
    return BuildConfig(
        base_url="https://blog.example.com/",
        feed_uuid=FEED_UUID,
        title="Example Blog",
        subtitle="Notes and experiments",
        author_name="Jo Writer",
        author_uri="https://jo.example.com",
        timestamp=dt.datetime(2024, 6, 1, 12, 0, 0, tzinfo=dt.timezone.utc),
    )


@pytest.fixture
def write_post(tmp_path: Path):
    """Write a post under `tmp_path/content` and return its path."""
    root = tmp_path / "content"

    def _write(relative: str, title: str, date: str, content_uuid: str | None = None, body: str = "Some *content*.") -> Path:
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(post_source(title, date, content_uuid or str(uuid.uuid4()), body), encoding="utf-8")
        return path

    _write.root = root
    return _write
