from __future__ import annotations

import datetime as dt
import html
from pathlib import Path
from typing import Optional

from .config import SiteConfig
from .content import DocumentRecord
from .index import INDEX, TagIndex
from .render import write_text
from .utils import join_url, md5_hex, rfc3339

GENERATOR = '<generator uri="https://fossil.deparis.io/neruda">Neruda</generator>'


def alternate_url(bucket_name: str, config: SiteConfig) -> str:
    if bucket_name == INDEX:
        return join_url(config.domain, config.blog_prefix)
    return join_url(config.domain, f"tags/{TagIndex.slug(bucket_name)}.html")


def feed_url(bucket_name: str, config: SiteConfig) -> str:
    return join_url(config.domain, f"feeds/{TagIndex.slug(bucket_name)}.xml")


def atom_header(bucket_name: str, config: SiteConfig, updated: dt.datetime) -> str:
    title = bucket_name
    if bucket_name == INDEX and config.title:
        title = config.title
    title_esc = html.escape(title)
    return "\n".join(
        [
            '<?xml version="1.0" encoding="utf-8"?>',
            '<feed xmlns="http://www.w3.org/2005/Atom"',
            '      xmlns:dc="http://purl.org/dc/elements/1.1/"',
            '      xmlns:wfw="http://wellformedweb.org/CommentAPI/"',
            f'      xml:lang="{html.escape(config.lang)}">',
            "",
            f"<title>{title_esc}</title>",
            f'<link href="{feed_url(bucket_name, config)}" rel="self" type="application/atom+xml"/>',
            f'<link href="{alternate_url(bucket_name, config)}" rel="alternate" type="text/html" title="{title_esc}"/>',
            f"<updated>{rfc3339(updated)}</updated>",
            f"<author><name>{html.escape(config.author)}</name></author>",
            f"<id>urn:md5:{md5_hex(config.domain)}</id>",
            GENERATOR,
        ]
    )


def atom_entry(article: DocumentRecord) -> str:
    title_esc = html.escape(article.title)
    published = rfc3339(article.date) if article.date else ""
    lines = [
        "<entry>",
        f"  <title>{title_esc}</title>",
        f'  <link href="{html.escape(article.url)}" rel="alternate" type="text/html"',
        f'        title="{title_esc}"/>',
        f"  <id>urn:md5:{md5_hex(article.timekey)}</id>",
        f"  <published>{published}</published>",
        f"  <updated>{published}</updated>",
        f"  <author><name>{html.escape(article.author)}</name></author>",
    ]
    keywords = "".join(f"<dc:subject>{html.escape(k)}</dc:subject>" for k in article.keywords)
    if keywords:
        lines.append(f"  {keywords}")
    content = article.body or article.excerpt
    lines.append(f'  <content type="html">{html.escape(content)}</content>')
    lines.append("</entry>")
    return "\n".join(lines)


def render_atom(
    bucket_name: str,
    articles: list[DocumentRecord],
    config: SiteConfig,
    now: Optional[dt.datetime] = None,
) -> str:
    updated = now or dt.datetime.now(dt.timezone.utc)
    content = [atom_header(bucket_name, config, updated)]
    for article in articles[: config.feed_limit]:
        content.append(atom_entry(article))
    content.append("</feed>")
    return "\n".join(content) + "\n"


def write_atom(
    bucket_name: str,
    articles: list[DocumentRecord],
    config: SiteConfig,
    now: Optional[dt.datetime] = None,
) -> Path:
    dest = config.public_dir / "feeds" / f"{TagIndex.slug(bucket_name)}.xml"
    write_text(dest, render_atom(bucket_name, articles, config, now))
    return dest
