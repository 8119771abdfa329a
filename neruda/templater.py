from __future__ import annotations

import re
import sys
from concurrent.futures import ThreadPoolExecutor
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, Optional

from bs4 import BeautifulSoup, Tag

from . import dom
from .config import SiteConfig, TemplateRule
from .content import DocumentRecord
from .render import write_text
from .utils import error, md5_hex

CHECK_LINE_FMT = " Neruda Template: {digest} "
PLACEHOLDER_RE = re.compile(r"%([takdlu%])")


def check_line(content: str) -> str:
    return CHECK_LINE_FMT.format(digest=md5_hex(content))


def target_name(file_path: Path, config: SiteConfig) -> str:
    """Express ``file_path`` under the configured public folder."""
    try:
        rel = file_path.resolve().relative_to(config.public_dir.resolve())
    except ValueError:
        return file_path.as_posix()
    return f"{config.public_folder}/{rel.as_posix()}"


def check_path(file_name: str, patterns: Iterable[str], public_folder: str) -> bool:
    for pattern in patterns:
        if not pattern.startswith("/"):
            pattern = f"/{pattern}"
        if fnmatchcase(file_name, f"{public_folder}{pattern}"):
            return True
    return False


def applicable_rules(file_name: str, config: SiteConfig) -> list[TemplateRule]:
    rules = []
    for rule in config.templates:
        if rule.inert:
            continue
        if rule.path and not check_path(file_name, rule.path, config.public_folder):
            continue
        rules.append(rule)
    return rules


def format_content(content: str, config: SiteConfig, record: Optional[DocumentRecord] = None) -> str:
    values = {
        "t": record.title if record else "",
        "a": (record.author if record else "") or config.author,
        "k": ", ".join(record.keywords) if record else "",
        "d": record.datestring() if record else "",
        "l": config.lang,
        "u": record.url if record else "",
        "%": "%",
    }
    return PLACEHOLDER_RE.sub(lambda m: values[m.group(1)], content)


def insert_new_node_at(node: Tag, content: str, position: str) -> None:
    if position == "before":
        dom.insert_before(node, content)
    elif position == "replace":
        dom.replace(node, content)
    else:
        dom.insert_after(node, content)


def apply_rules(
    tree: BeautifulSoup,
    rules: list[TemplateRule],
    config: SiteConfig,
    record: Optional[DocumentRecord] = None,
) -> bool:
    """Apply ``rules`` in order to ``tree``.

    Returns False as soon as one rule is found already applied: the
    caller must then drop the whole tree, including changes made by the
    rules before it.
    """
    if dom.head(tree) is None:
        return False
    # Markers from earlier passes only; a marker added below must not
    # stop a later rule sharing the same content.
    existing = set(dom.head_comments(tree))
    applied = False
    for rule in rules:
        line = check_line(rule.content)
        if line in existing:
            return False
        if dom.head(tree) is None:
            # An earlier rule replaced <head>.
            break
        if line not in dom.head_comments(tree):
            dom.prepend_comment(tree, line)
        content = format_content(rule.content, config, record)
        for node in dom.query(tree, rule.selector):
            insert_new_node_at(node, content, rule.position)
        applied = True
    return applied


def customize_output(
    file_path: Path, config: SiteConfig, record: Optional[DocumentRecord] = None
) -> bool:
    rules = applicable_rules(target_name(file_path, config), config)
    if not rules:
        return False
    tree = dom.parse(file_path.read_text(encoding="utf-8"))
    if not apply_rules(tree, rules, config, record):
        return False
    write_text(file_path, dom.serialize(tree))
    return True


def customize_files(
    paths: Iterable[Path],
    config: SiteConfig,
    records: Optional[dict[Path, DocumentRecord]] = None,
) -> int:
    # One unit per physical file, however the path was spelled.
    by_file: dict[Path, Path] = {}
    for p in paths:
        by_file.setdefault(Path(p).resolve(), Path(p))
    unique = list(by_file.values())
    if not unique:
        print("No source file given", file=sys.stderr)
        return 0
    records = {path.resolve(): record for path, record in (records or {}).items()}

    def run(path: Path) -> Optional[bool]:
        try:
            return customize_output(path, config, records.get(path.resolve()))
        except (OSError, UnicodeDecodeError) as exc:
            error(f"Unable to customize {path}: {exc}")
            return None

    if config.workers <= 1 or len(unique) <= 1:
        results = [run(path) for path in unique]
    else:
        with ThreadPoolExecutor(max_workers=min(config.workers, len(unique))) as executor:
            results = list(executor.map(run, unique))
    changed = sum(1 for result in results if result)
    print(f"Customized {changed} of {len(unique)} file(s).")
    return sum(1 for result in results if result is None)
