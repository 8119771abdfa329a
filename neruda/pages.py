from __future__ import annotations

import datetime as dt
import html
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, Optional

from . import atom
from .config import SiteConfig
from .content import DocumentRecord, html_name
from .index import INDEX, TagIndex
from .render import read_template, render_template, write_text
from .utils import error, warn

PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="{{lang}}">
  <head>
    <meta charset="utf-8">
    <title>{{title}}</title>
    {{extra_head}}
  </head>
  <body>
    <header><p class="site-title">{{site_title}}</p></header>
    <main>
{{content}}
    </main>
    <footer><p>{{author}} - {{year}}</p></footer>
  </body>
</html>
"""


def page_template(config: SiteConfig) -> str:
    if config.template_file:
        return read_template(Path(config.template_file))
    return PAGE_TEMPLATE


def render_page(config: SiteConfig, title: str, content: str, extra_head: str = "") -> str:
    return render_template(
        page_template(config),
        lang=html.escape(config.lang),
        title=html.escape(title),
        site_title=html.escape(config.title),
        author=html.escape(config.author),
        year=str(dt.datetime.now().year),
        extra_head=extra_head,
        content=content,
    )


def article_path(record: DocumentRecord, config: SiteConfig) -> Path:
    return config.public_dir / html_name(record.path)


def render_article(record: DocumentRecord, config: SiteConfig) -> str:
    keyword_links = " ".join(
        f'<a class="chip" href="{html.escape(atom.alternate_url(k, config))}">{html.escape(k)}</a>'
        for k in record.keywords
    )
    content = (
        '<article class="post">'
        f'<h1 class="post-title">{html.escape(record.title)}</h1>'
        '<div class="post-meta">'
        f'<span class="post-date">{record.datestring()}</span>'
        f'<span class="post-author">{html.escape(record.author)}</span>'
        f'<div class="post-tags">{keyword_links}</div>'
        "</div>"
        f'<div class="post-body">{record.body}</div>'
        "</article>"
    )
    return render_page(config, record.title, content)


def write_articles(
    documents: Iterable[DocumentRecord], config: SiteConfig
) -> tuple[dict[Path, DocumentRecord], int]:
    written = {}
    failures = 0
    blog_index = tag_page_path(INDEX, config) if config.blog_prefix else None
    for record in documents:
        dest = article_path(record, config)
        if dest == blog_index:
            warn(f"{record.path} would be overwritten by the blog index page, skipped")
            continue
        try:
            write_text(dest, render_article(record, config))
        except OSError as exc:
            error(f"Unable to write {dest}: {exc}")
            failures += 1
            continue
        written[dest] = record
    return written, failures


def build_article_list(articles: list[DocumentRecord]) -> str:
    rows = []
    for article in articles:
        rows.append(
            f'<li><span class="archive-date">{article.datestring()}</span>'
            f'<a href="{html.escape(article.url)}">{html.escape(article.title)}</a></li>'
        )
    return f'<ul class="archive-list">{"".join(rows)}</ul>'


def render_tag_page(bucket_name: str, articles: list[DocumentRecord], config: SiteConfig) -> str:
    title = bucket_name
    if bucket_name == INDEX:
        title = config.title or "Blog"
    feed = atom.feed_url(bucket_name, config)
    content = (
        '<div class="section-head">'
        f"<h2>{html.escape(title)}</h2>"
        f'<p><a href="{html.escape(feed)}">Atom feed</a></p>'
        "</div>"
        f"{build_article_list(articles)}"
    )
    extra_head = f'<link rel="alternate" type="application/atom+xml" href="{html.escape(feed)}" title="{html.escape(title)}">'
    return render_page(config, title, content, extra_head)


def tag_page_path(bucket_name: str, config: SiteConfig) -> Path:
    if bucket_name == INDEX:
        return config.public_dir / config.blog_prefix / "index.html"
    return config.public_dir / "tags" / f"{TagIndex.slug(bucket_name)}.html"


def write_tag_page(bucket_name: str, articles: list[DocumentRecord], config: SiteConfig) -> Path:
    dest = tag_page_path(bucket_name, config)
    write_text(dest, render_tag_page(bucket_name, articles, config))
    return dest


def render_tag_list(tag_index: TagIndex, config: SiteConfig) -> str:
    items = []
    for name in tag_index.tags:
        slug = TagIndex.slug(name)
        items.append(
            f'<li><a href="{slug}.html">{html.escape(name)}</a>'
            f'<span class="count">{len(tag_index[name])}</span>'
            f' <a class="feed" href="../feeds/{slug}.xml">Atom</a></li>'
        )
    body = "\n".join(items) if items else "<li>No tags yet.</li>"
    content = (
        '<div class="section-head">'
        "<h2>Tags</h2>"
        "</div>"
        f'<ul class="category-list">{body}</ul>'
    )
    return render_page(config, "Tags", content)


def write_indexes(
    tag_index: TagIndex, config: SiteConfig, now: Optional[dt.datetime] = None
) -> int:
    """Write the feed and the HTML page of every bucket.

    Each bucket is written on its own; the return value is the number of
    buckets which could not be written.
    """
    if not tag_index:
        return 0
    now = now or dt.datetime.now(dt.timezone.utc)

    def write_bucket(name: str) -> bool:
        articles = tag_index[name]
        try:
            atom.write_atom(name, articles, config, now)
            write_tag_page(name, articles, config)
        except OSError as exc:
            error(f"Unable to write index {name!r}: {exc}")
            return False
        return True

    names = list(tag_index.buckets)
    if config.workers <= 1 or len(names) <= 1:
        results = [write_bucket(name) for name in names]
    else:
        with ThreadPoolExecutor(max_workers=min(config.workers, len(names))) as executor:
            results = list(executor.map(write_bucket, names))
    failures = results.count(False)
    try:
        write_text(config.public_dir / "tags" / "index.html", render_tag_list(tag_index, config))
    except OSError as exc:
        error(f"Unable to write tag list: {exc}")
        failures += 1
    print(f"Wrote {len(names) - results.count(False)} feed(s) in {config.public_dir / 'feeds'}")
    return failures
