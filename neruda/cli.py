from __future__ import annotations

import argparse
import time
from pathlib import Path
from typing import Optional

from .config import SiteConfig, load_config, site_config
from .index import build_index
from .pages import write_articles, write_indexes
from .sources import load_documents
from .templater import customize_files
from .utils import error

DEFAULT_CONFIG = "neruda.toml"


def build_site(config: SiteConfig) -> int:
    documents, failures = load_documents(config)
    written, article_failures = write_articles(documents, config)
    failures += article_failures
    failures += write_indexes(build_index(documents, config), config)
    html_files = sorted(config.public_dir.rglob("*.html"), key=lambda p: p.as_posix())
    if html_files:
        failures += customize_files(html_files, config, written)
    return failures


def build_feeds(config: SiteConfig) -> int:
    documents, failures = load_documents(config)
    tag_index = build_index(documents, config)
    if not tag_index:
        print("No blog path configured or no article found. No index written.")
        return failures
    return failures + write_indexes(tag_index, config)


def make_parser(config_path: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="neruda", description="Static site publisher.")
    parser.add_argument("--config", default=config_path, help="Path to site config file (TOML/YAML/JSON).")
    parser.add_argument("--domain", default=None, help="Public site URL, used in feeds.")
    parser.add_argument("--title", default=None, help="Site title.")
    parser.add_argument("--author", default=None, help="Default author name.")
    parser.add_argument("--lang", default=None, help="Site language.")
    parser.add_argument("--public-folder", default=None, help="Output directory for the site.")
    parser.add_argument("--source-folder", default=None, help="Directory containing Markdown sources.")
    parser.add_argument("--blog-path", default=None, help="Source sub-directory holding blog articles.")
    parser.add_argument("--feed-limit", default=None, type=int, help="Maximum number of entries per feed.")
    parser.add_argument("--workers", default=None, type=int, help="Number of worker threads.")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("build", help="Render sources, write indexes and customize output.")
    customize = subparsers.add_parser("customize", help="Apply template rules to HTML files.")
    customize.add_argument("files", nargs="*", type=Path, help="HTML files to customize.")
    subparsers.add_parser("index", help="Write Atom feeds and tag pages.")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument("--config", default=DEFAULT_CONFIG)
    pre_args, _ = pre_parser.parse_known_args(argv)
    data = load_config(Path(pre_args.config))

    args = make_parser(pre_args.config).parse_args(argv)
    config = site_config(
        data,
        domain=args.domain,
        title=args.title,
        author=args.author,
        lang=args.lang,
        public_folder=args.public_folder,
        source_folder=args.source_folder,
        blog_path=args.blog_path,
        feed_limit=args.feed_limit,
        workers=args.workers,
    )

    start = time.perf_counter()
    if args.command == "customize":
        failures = customize_files(args.files, config)
    elif args.command == "index":
        failures = build_feeds(config)
    else:
        failures = build_site(config)
        print(f"Site generated in: {config.public_folder}")
    elapsed = time.perf_counter() - start
    print(f"Done in {elapsed:.2f}s.")
    if failures:
        error(f"{failures} unit(s) failed.")
        return 1
    return 0
