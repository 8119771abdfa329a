from __future__ import annotations

from pathlib import Path
from typing import Optional

import markdown

from .config import SiteConfig
from .content import (
    DocumentRecord,
    extract_title,
    get_keywords,
    html_name,
    parse_date,
    parse_front_matter,
    slugify,
)
from .render import strip_tags
from .utils import error, join_url, warn

EXCERPT_LENGTH = 200


def make_excerpt(meta: dict, html_content: str) -> str:
    summary = meta.get("summary") or meta.get("description")
    if summary:
        return summary
    summary = strip_tags(html_content).strip().replace("\n", " ")
    return summary[:EXCERPT_LENGTH] + ("..." if len(summary) > EXCERPT_LENGTH else "")


def read_document(md_file: Path, root: Path, config: SiteConfig) -> DocumentRecord:
    rel = md_file.relative_to(root).as_posix()
    raw_text = md_file.read_text(encoding="utf-8")
    meta, body = parse_front_matter(raw_text)
    title, body = extract_title(meta, body)
    date = parse_date(meta, md_file)
    if date is None:
        warn(f"Malformed date {meta.get('date')!r} in {md_file}")
    md = markdown.Markdown(extensions=["fenced_code", "tables"])
    html_content = md.convert(body)
    explicit_slug = (meta.get("slug") or "").strip()
    return DocumentRecord(
        title=title,
        slug=slugify(explicit_slug) if explicit_slug else slugify(md_file.stem),
        url=join_url(config.domain, html_name(rel)),
        author=meta.get("author") or config.author,
        date=date,
        keywords=tuple(get_keywords(meta)),
        excerpt=make_excerpt(meta, html_content),
        body=html_content,
        timekey=(meta.get("timekey") or "").strip(),
        path=rel,
    )


def load_documents(
    config: SiteConfig, root: Optional[Path] = None
) -> tuple[list[DocumentRecord], int]:
    root = root or Path(config.source_folder)
    if not root.exists():
        error(f"Source directory not found: {root}")
        return [], 1
    documents = []
    failures = 0
    for md_file in sorted(root.rglob("*.md"), key=lambda p: p.as_posix()):
        try:
            documents.append(read_document(md_file, root, config))
        except (OSError, UnicodeDecodeError) as exc:
            error(f"Unable to read {md_file}: {exc}")
            failures += 1
    return documents, failures
