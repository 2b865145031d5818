from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Sequence

from .config import BuildConfig, RawHtmlPolicy, load_config
from .errors import PostpressError
from .pipeline import build, write_output
from .utils import parse_bool, parse_int


def setup_logging(level: str = "WARNING") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def build_parser(config: dict, config_path: str) -> argparse.ArgumentParser:
    def cfg_str(key: str, default: str) -> str:
        value = config.get(key)
        return default if value is None else str(value)

    def cfg_bool(key: str, default: bool) -> bool:
        value = config.get(key)
        return default if value is None else parse_bool(value)

    def cfg_int(key: str, default: int) -> int:
        return parse_int(config.get(key), default)

    parser = argparse.ArgumentParser(description="Render a markdown content directory to HTML fragments and an Atom feed.")
    parser.add_argument("--config", default=config_path, help="Path to config file (TOML/YAML/JSON).")
    parser.add_argument("--content", default=cfg_str("content", "content"), help="Directory containing markdown content.")
    parser.add_argument("--output", default=cfg_str("output", "dist"), help="Output directory.")
    parser.add_argument("--base-url", default=cfg_str("base_url", ""), help="Public URL of the site, with a trailing slash.")
    parser.add_argument("--title", default=cfg_str("title", ""), help="Feed title.")
    parser.add_argument("--subtitle", default=cfg_str("subtitle", ""), help="Feed subtitle.")
    parser.add_argument("--feed-uuid", default=cfg_str("feed_uuid", ""), help="UUID identifying the feed.")
    parser.add_argument(
        "--raw-html",
        choices=[policy.value for policy in RawHtmlPolicy],
        default=cfg_str("raw_html", RawHtmlPolicy.PASSTHROUGH.value),
        help="Keep or drop raw HTML that holds no custom component.",
    )
    parser.add_argument(
        "--strict",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("strict", False),
        help="Abort on the first content error instead of reporting all of them.",
    )
    parser.add_argument(
        "--highlight",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("highlight_code", False),
        help="Highlight code blocks with Pygments.",
    )
    parser.add_argument(
        "--workers",
        default=cfg_int("workers", 1),
        type=int,
        help="Number of worker threads for rendering.",
    )
    parser.add_argument("--log-level", default=cfg_str("log_level", "WARNING"), help="Logging level.")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument("--config", default="postpress.toml")
    pre_args, _ = pre_parser.parse_known_args(argv)

    try:
        config_data = load_config(Path(pre_args.config))
    except PostpressError as exc:
        print(exc, file=sys.stderr)
        return 1

    args = build_parser(config_data, pre_args.config).parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = BuildConfig.from_mapping(
            config_data,
            base_url=args.base_url or None,
            title=args.title or None,
            subtitle=args.subtitle or None,
            feed_uuid=args.feed_uuid or None,
            raw_html=args.raw_html,
            strict=args.strict,
            highlight_code=args.highlight,
            workers=args.workers,
        )
    except PostpressError as exc:
        print(exc, file=sys.stderr)
        return 1

    content_dir = Path(args.content)
    if not content_dir.exists():
        print(f"Content directory not found: {content_dir}", file=sys.stderr)
        return 1

    start = time.perf_counter()
    try:
        result = build(content_dir, config)
    except PostpressError as exc:
        print(f"Build aborted: {exc}", file=sys.stderr)
        return 1
    written = write_output(result, Path(args.output))
    elapsed = time.perf_counter() - start

    if result.failures:
        print("Failed to process the following content:", file=sys.stderr)
        for failure in result.failures:
            print(f"  {failure}", file=sys.stderr)
    print(f"Build completed in {elapsed:.2f}s: {len(result.html)} pages, {len(written)} files in {args.output}")
    return 0 if result.ok else 1
