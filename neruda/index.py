from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Iterable

from .config import SiteConfig
from .content import DocumentRecord, slugify
from .utils import warn

INDEX = "index"


@dataclass
class TagIndex:
    buckets: dict[str, list[DocumentRecord]] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.buckets)

    def __getitem__(self, name: str) -> list[DocumentRecord]:
        return self.buckets[name]

    def __contains__(self, name: object) -> bool:
        return name in self.buckets

    @property
    def tags(self) -> list[str]:
        return sorted((name for name in self.buckets if name != INDEX), key=str.lower)

    @staticmethod
    def slug(name: str) -> str:
        return slugify(name)


def in_blog(record: DocumentRecord, blog_prefix: str) -> bool:
    blog_parts = PurePosixPath(blog_prefix).parts
    parts = PurePosixPath(record.path).parts
    return len(parts) > len(blog_parts) and parts[: len(blog_parts)] == blog_parts


def build_index(documents: Iterable[DocumentRecord], config: SiteConfig) -> TagIndex:
    tag_index = TagIndex()
    blog_prefix = config.blog_prefix
    if not blog_prefix:
        return tag_index

    buckets: dict[str, list[DocumentRecord]] = {}
    slugs: dict[str, dict[str, DocumentRecord]] = {}
    tag_names: dict[str, str] = {}

    def add(name: str, record: DocumentRecord) -> None:
        used = slugs.setdefault(name, {})
        if used.get(record.slug) is record:
            return
        if record.slug in used:
            warn(f"Duplicate slug {record.slug!r} in {name!r}, skipping {record.path or record.title}")
            return
        used[record.slug] = record
        buckets.setdefault(name, []).append(record)

    for record in documents:
        if not in_blog(record, blog_prefix):
            continue
        if record.date is None:
            warn(f"Invalid date for {record.path or record.title}, not indexed")
            continue
        add(INDEX, record)
        for keyword in record.keywords:
            if TagIndex.slug(keyword) == INDEX:
                warn(f"Tag {keyword!r} is reserved, ignored for {record.path or record.title}")
                continue
            # Tags sharing a slug share one feed file.
            add(tag_names.setdefault(TagIndex.slug(keyword), keyword), record)

    for name, records in buckets.items():
        # sorted() is stable, reverse=True included.
        tag_index.buckets[name] = sorted(records, key=lambda r: r.date, reverse=True)
    return tag_index
