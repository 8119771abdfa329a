from __future__ import annotations

import datetime as dt
from pathlib import Path

import pytest

from neruda.config import SiteConfig, site_config
from neruda.content import DocumentRecord, slugify

HTML_BASE = """<!DOCTYPE html>
<html>
  <head>
    <title>My website</title>
  </head>
  <body>
    <h1>My website</h1>
  </body>
</html>
"""

METATAG = '<meta property="test" content="TEST">'


@pytest.fixture
def site(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "public_html").mkdir()
    return tmp_path


@pytest.fixture
def make_config():
    def factory(**data: object) -> SiteConfig:
        base = {
            "domain": "https://example.org",
            "title": "My website",
            "author": "Jane Doe",
            "lang": "fr",
            "public_folder": "public_html",
            "blog_path": "blog",
        }
        base.update(data)
        return site_config(base)

    return factory


@pytest.fixture
def make_record():
    def factory(
        title: str,
        day: int = 1,
        keywords: tuple[str, ...] = (),
        path: str = "",
        **fields: object,
    ) -> DocumentRecord:
        slug = slugify(title)
        path = path or f"blog/{slug}.md"
        values = {
            "title": title,
            "slug": slug,
            "url": f"https://example.org/{path[:-3]}.html",
            "author": "Jane Doe",
            "date": dt.datetime(2024, 1, day, 12, 0, tzinfo=dt.timezone.utc),
            "keywords": keywords,
            "excerpt": f"Excerpt of {title}",
            "body": f"<p>Body of {title}</p>",
            "path": path,
        }
        values.update(fields)
        return DocumentRecord(**values)

    return factory


@pytest.fixture
def html_file(site: Path) -> Path:
    path = site / "public_html" / "customize_test.html"
    path.write_text(HTML_BASE, encoding="utf-8")
    return Path("public_html/customize_test.html")
