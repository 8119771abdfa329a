from __future__ import annotations

import datetime as dt
import re
import unicodedata
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional

from .utils import aware, md5_hex

SLUG_RE = re.compile(r"[\W_]+", re.UNICODE)
TIMEKEY_FMT = "%Y%m%d%H%M%S"


def slugify(text: str) -> str:
    # Accents go, other scripts stay; a name with no word character at
    # all gets a digest so two such names never share a slug.
    slug = unicodedata.normalize("NFKD", text)
    slug = "".join(c for c in slug if not unicodedata.combining(c))
    slug = SLUG_RE.sub("-", slug.lower()).strip("-")
    return slug or md5_hex(text)[:12]


def parse_list(value: str) -> list[str]:
    value = value.strip()
    if value.startswith("[") and value.endswith("]"):
        inner = value[1:-1]
        items = [item.strip().strip("'\"") for item in inner.split(",")]
    else:
        items = [item.strip() for item in value.split(",")]
    return [item for item in items if item]


def parse_front_matter(text: str) -> tuple[dict, str]:
    clean_text = text.lstrip("\ufeff")
    lines = clean_text.splitlines()
    if not lines or lines[0].strip() != "---":
        return {}, clean_text

    end = None
    for i in range(1, len(lines)):
        if lines[i].strip() == "---":
            end = i
            break
    if end is None:
        return {}, clean_text

    meta = {}
    for line in lines[1:end]:
        line = line.strip()
        if not line or line.startswith("#") or ":" not in line:
            continue
        key, value = line.split(":", 1)
        key = key.strip().lower()
        value = value.strip()
        if key in {"keywords", "tags"}:
            meta[key] = parse_list(value)
        else:
            meta[key] = value
    body = "\n".join(lines[end + 1 :])
    return meta, body


def extract_title(meta: dict, body: str) -> tuple[str, str]:
    if meta.get("title"):
        return meta["title"], body
    lines = body.splitlines()
    for i, line in enumerate(lines):
        stripped = line.strip()
        if stripped.startswith("# "):
            title = stripped[2:].strip() or "Untitled"
            new_body = "\n".join(lines[i + 1 :]).lstrip()
            return title, new_body
        if stripped:
            break
    return "Untitled", body


def parse_date(meta: dict, file_path: Path) -> Optional[dt.datetime]:
    """Return the article date, or None when the date field cannot be read.

    A missing date falls back to the file modification time so the
    article keeps the same identity between two builds.
    """
    date_value = (meta.get("date") or "").strip()
    if not date_value:
        return dt.datetime.fromtimestamp(file_path.stat().st_mtime)
    if date_value[-1] in "Zz":
        date_value = f"{date_value[:-1]}+00:00"
    try:
        return dt.datetime.fromisoformat(date_value)
    except ValueError:
        return None


def get_keywords(meta: dict) -> list[str]:
    if meta.get("keywords"):
        return meta["keywords"]
    if meta.get("tags"):
        return meta["tags"]
    return []


def make_timekey(date: Optional[dt.datetime], fallback: str) -> str:
    if date is None:
        return fallback
    return date.strftime(TIMEKEY_FMT)


@dataclass(frozen=True)
class DocumentRecord:
    """One published article, as handed over by the source reader."""

    title: str
    slug: str
    url: str
    author: str
    date: Optional[dt.datetime]
    keywords: tuple[str, ...] = ()
    excerpt: str = ""
    body: str = ""
    timekey: str = ""
    path: str = ""

    def __post_init__(self) -> None:
        # Frozen: normalize through object.__setattr__.
        object.__setattr__(self, "keywords", tuple(dict.fromkeys(k for k in self.keywords if k)))
        if self.date is not None:
            object.__setattr__(self, "date", aware(self.date))
        if not self.timekey:
            object.__setattr__(self, "timekey", make_timekey(self.date, self.path or self.slug))

    def datestring(self, fmt: str = "%Y-%m-%d") -> str:
        if self.date is None:
            return ""
        return self.date.strftime(fmt)


def html_name(path: str) -> str:
    return PurePosixPath(path).with_suffix(".html").as_posix()
