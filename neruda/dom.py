from __future__ import annotations

from typing import Optional

import soupsieve
from bs4 import BeautifulSoup, Comment, NavigableString, PageElement, Tag

from .utils import warn

PARSER = "html.parser"


def parse(text: str) -> BeautifulSoup:
    return BeautifulSoup(text, PARSER)


def serialize(tree: BeautifulSoup) -> str:
    return str(tree)


def query(tree: BeautifulSoup, selector: str) -> list[Tag]:
    try:
        return tree.select(selector)
    except soupsieve.SelectorSyntaxError as exc:
        warn(f"Invalid selector {selector!r}: {exc}")
        return []


def fragment(html_text: str) -> list[PageElement]:
    # Each call parses again: a node can only live at one place in a tree.
    return list(BeautifulSoup(html_text, PARSER).contents)


def insert_before(node: Tag, html_text: str) -> None:
    for new_node in fragment(html_text):
        node.insert_before(new_node)


def insert_after(node: Tag, html_text: str) -> None:
    anchor: PageElement = node
    for new_node in fragment(html_text):
        anchor.insert_after(new_node)
        anchor = new_node


def replace(node: Tag, html_text: str) -> None:
    new_nodes = fragment(html_text)
    if new_nodes:
        node.replace_with(*new_nodes)
    else:
        node.decompose()


def head(tree: BeautifulSoup) -> Optional[Tag]:
    return tree.head


def head_comments(tree: BeautifulSoup) -> list[str]:
    head_tag = head(tree)
    if head_tag is None:
        return []
    return [str(child) for child in head_tag.children if isinstance(child, Comment)]


def prepend_comment(tree: BeautifulSoup, text: str) -> None:
    head_tag = head(tree)
    if head_tag is None:
        raise ValueError("document has no <head> element")
    head_tag.insert(0, Comment(text))
    head_tag.insert(1, NavigableString("\n"))
