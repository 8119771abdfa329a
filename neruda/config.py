from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from .utils import parse_int

if sys.version_info >= (3, 11):
    import tomllib as toml
else:
    import tomli as toml

POSITIONS = {"before", "after", "replace"}
FEED_LIMIT = 10


def load_config(path: Path) -> dict:
    if not path.exists():
        return {}
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix == ".toml":
        try:
            data = toml.loads(text)
        except toml.TOMLDecodeError as exc:
            print(f"Invalid TOML in config file {path}: {exc}", file=sys.stderr)
            sys.exit(1)
        return data
    if suffix in {".yml", ".yaml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            print(f"Invalid YAML in config file {path}: {exc}", file=sys.stderr)
            sys.exit(1)
        if data is None:
            return {}
        if not isinstance(data, dict):
            print(f"YAML config must be a mapping: {path}", file=sys.stderr)
            sys.exit(1)
        return data
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        print(f"Invalid JSON in config file {path}: {exc}", file=sys.stderr)
        sys.exit(1)
    if not isinstance(data, dict):
        print(f"JSON config must be an object: {path}", file=sys.stderr)
        sys.exit(1)
    return data


@dataclass(frozen=True)
class TemplateRule:
    selector: str = ""
    content: str = ""
    position: str = "after"
    path: tuple[str, ...] = ()

    @property
    def inert(self) -> bool:
        return not self.selector or not self.content

    @classmethod
    def from_mapping(cls, data: dict) -> "TemplateRule":
        position = str(data.get("type") or data.get("position") or "after").strip().lower()
        if position not in POSITIONS:
            position = "after"
        paths = data.get("path") or ()
        if isinstance(paths, str):
            paths = (paths,)
        return cls(
            selector=str(data.get("selector") or ""),
            content=str(data.get("content") or ""),
            position=position,
            path=tuple(str(p) for p in paths),
        )


@dataclass(frozen=True)
class SiteConfig:
    domain: str = ""
    title: str = ""
    author: str = ""
    lang: str = "en"
    public_folder: str = "public_html"
    source_folder: str = "src"
    blog_path: str = ""
    templates: tuple[TemplateRule, ...] = field(default_factory=tuple)
    feed_limit: int = FEED_LIMIT
    workers: int = 1
    template_file: Optional[str] = None

    @property
    def public_dir(self) -> Path:
        return Path(self.public_folder)

    @property
    def blog_prefix(self) -> str:
        return self.blog_path.strip("/")


def site_config(data: dict, **overrides: object) -> SiteConfig:
    """Build the immutable site configuration.

    ``data`` is the mapping read from the configuration file and
    ``overrides`` holds command line values; ``None`` overrides are
    ignored so that unset flags keep the file value.
    """
    merged = dict(data)
    merged.update({key: value for key, value in overrides.items() if value is not None})
    templates = merged.get("templates") or []
    if isinstance(templates, dict):
        templates = [templates]
    rules = tuple(TemplateRule.from_mapping(t) for t in templates if isinstance(t, dict))
    template_file = merged.get("template_file")
    return SiteConfig(
        domain=str(merged.get("domain") or "").rstrip("/"),
        title=str(merged.get("title") or ""),
        author=str(merged.get("author") or ""),
        lang=str(merged.get("lang") or "en"),
        public_folder=str(merged.get("public_folder") or "public_html").rstrip("/"),
        source_folder=str(merged.get("source_folder") or "src").rstrip("/"),
        blog_path=str(merged.get("blog_path") or "").strip("/"),
        templates=rules,
        feed_limit=max(1, parse_int(merged.get("feed_limit"), FEED_LIMIT)),
        workers=max(1, min(parse_int(merged.get("workers"), 1), 32)),
        template_file=str(template_file) if template_file else None,
    )
