"""Tests for the output customization pass."""

from __future__ import annotations

import hashlib
from pathlib import Path

from bs4 import BeautifulSoup, Comment

from neruda.config import TemplateRule
from neruda.templater import (
    check_line,
    check_path,
    customize_files,
    customize_output,
    format_content,
)

from conftest import HTML_BASE, METATAG


def md5(text: str) -> str:
    return hashlib.md5(text.encode("utf-8")).hexdigest()


def marker(content: str) -> str:
    return f"<!-- Neruda Template: {md5(content)} -->"


def head_order(text: str) -> list[str]:
    """Names of the head elements in order, "test" for the inserted meta."""
    soup = BeautifulSoup(text, "html.parser")
    assert soup.find("meta", property="test")["content"] == "TEST"
    return ["test" if tag.get("property") == "test" else tag.name for tag in soup.head.find_all(True)]


class TestCustomizeOutput:
    def test_after_is_default(self, html_file: Path, make_config) -> None:
        config = make_config(templates=[{"selector": "title", "content": METATAG}])

        assert customize_output(html_file, config) is True

        text = html_file.read_text(encoding="utf-8")
        assert marker(METATAG) in text
        assert head_order(text) == ["title", "test"]

    def test_before(self, html_file: Path, make_config) -> None:
        config = make_config(
            templates=[{"selector": "title", "type": "before", "content": METATAG}]
        )

        customize_output(html_file, config)

        assert head_order(html_file.read_text(encoding="utf-8")) == ["test", "title"]

    def test_replace(self, html_file: Path, make_config) -> None:
        config = make_config(
            templates=[{"selector": "body>h1", "type": "replace", "content": "<p>Toto tata</p>"}]
        )

        customize_output(html_file, config)

        text = html_file.read_text(encoding="utf-8")
        assert marker("<p>Toto tata</p>") in text
        assert "<p>Toto tata</p>" in text
        assert "<h1>" not in text

    def test_marker_is_first_child_of_head(self, html_file: Path, make_config) -> None:
        config = make_config(templates=[{"selector": "title", "content": METATAG}])

        customize_output(html_file, config)

        soup = BeautifulSoup(html_file.read_text(encoding="utf-8"), "html.parser")
        first = soup.head.contents[0]
        assert isinstance(first, Comment)
        assert str(first) == f" Neruda Template: {md5(METATAG)} "

    def test_positions_on_two_nodes(self, site: Path, make_config) -> None:
        path = Path("public_html/two.html")
        doc = "<html><head></head><body><p>one</p><p>two</p></body></html>"
        expected = {
            "before": "<b>x</b><p>one</p><b>x</b><p>two</p>",
            "after": "<p>one</p><b>x</b><p>two</p><b>x</b>",
            "replace": "<b>x</b><b>x</b>",
        }
        for position, body in expected.items():
            path.write_text(doc, encoding="utf-8")
            config = make_config(
                templates=[{"selector": "p", "type": position, "content": "<b>x</b>"}]
            )

            customize_output(path, config)

            soup = BeautifulSoup(path.read_text(encoding="utf-8"), "html.parser")
            assert soup.body.decode_contents() == body

    def test_multiple_nodes_fragment_keeps_order(self, site: Path, make_config) -> None:
        path = Path("public_html/frag.html")
        path.write_text("<html><head></head><body><p>one</p></body></html>", encoding="utf-8")
        config = make_config(templates=[{"selector": "p", "content": "<i>a</i><i>b</i>"}])

        customize_output(path, config)

        soup = BeautifulSoup(path.read_text(encoding="utf-8"), "html.parser")
        assert soup.body.decode_contents() == "<p>one</p><i>a</i><i>b</i>"

    def test_second_pass_is_a_noop(self, html_file: Path, make_config) -> None:
        config = make_config(templates=[{"selector": "title", "content": METATAG}])
        customize_output(html_file, config)
        first = html_file.read_bytes()

        assert customize_output(html_file, config) is False

        assert html_file.read_bytes() == first

    def test_changed_content_is_applied_again(self, html_file: Path, make_config) -> None:
        customize_output(html_file, make_config(templates=[{"selector": "title", "content": METATAG}]))
        other = '<meta property="test" content="OTHER">'

        assert customize_output(html_file, make_config(templates=[{"selector": "title", "content": other}]))

        text = html_file.read_text(encoding="utf-8")
        assert marker(METATAG) in text
        assert marker(other) in text
        assert 'content="OTHER"' in text

    def test_one_applied_rule_skips_the_whole_file(self, html_file: Path, make_config) -> None:
        old_rule = {"selector": "title", "content": METATAG}
        customize_output(html_file, make_config(templates=[old_rule]))
        first = html_file.read_bytes()
        new_rule = {"selector": "h1", "content": "<p>New rule</p>"}

        changed = customize_output(html_file, make_config(templates=[new_rule, old_rule]))

        assert changed is False
        assert html_file.read_bytes() == first
        assert "New rule" not in html_file.read_text(encoding="utf-8")

    def test_rules_sharing_content_in_one_pass(self, html_file: Path, make_config) -> None:
        config = make_config(
            templates=[
                {"selector": "title", "content": "<i>x</i>"},
                {"selector": "h1", "content": "<i>x</i>"},
            ]
        )

        assert customize_output(html_file, config) is True

        text = html_file.read_text(encoding="utf-8")
        assert text.count(marker("<i>x</i>")) == 1
        assert text.count("<i>x</i>") == 2
        assert customize_output(html_file, config) is False

    def test_inert_rules_are_ignored(self, html_file: Path, make_config) -> None:
        config = make_config(templates=[{"selector": "title"}, {"content": METATAG}])

        assert customize_output(html_file, config) is False

        assert html_file.read_text(encoding="utf-8") == HTML_BASE

    def test_no_template_leaves_file_untouched(self, html_file: Path, make_config) -> None:
        assert customize_output(html_file, make_config()) is False
        assert html_file.read_text(encoding="utf-8") == HTML_BASE

    def test_document_without_head(self, site: Path, make_config) -> None:
        path = Path("public_html/nohead.html")
        path.write_text("<p>Hello</p>", encoding="utf-8")
        config = make_config(templates=[{"selector": "p", "content": METATAG}])

        assert customize_output(path, config) is False

        assert path.read_text(encoding="utf-8") == "<p>Hello</p>"

    def test_unmatched_selector_still_flags_head(self, html_file: Path, make_config) -> None:
        config = make_config(templates=[{"selector": "nav", "content": METATAG}])

        assert customize_output(html_file, config) is True

        text = html_file.read_text(encoding="utf-8")
        assert marker(METATAG) in text
        assert 'property="test"' not in text

    def test_placeholders_use_record(self, html_file: Path, make_config, make_record) -> None:
        record = make_record("My post", keywords=("toto", "tata"))
        config = make_config(templates=[{"selector": "h1", "content": "<p>%t by %a: %k</p>"}])

        customize_output(html_file, config, record)

        text = html_file.read_text(encoding="utf-8")
        assert "<p>My post by Jane Doe: toto, tata</p>" in text
        assert marker("<p>%t by %a: %k</p>") in text


class TestPathScoping:
    def test_rule_applies_only_inside_path(self, site: Path, make_config) -> None:
        (site / "public_html" / "customize").mkdir()
        inside = Path("public_html/customize/test.html")
        outside = Path("public_html/customize_test.html")
        inside.write_text(HTML_BASE, encoding="utf-8")
        outside.write_text(HTML_BASE, encoding="utf-8")
        config = make_config(
            templates=[
                {"selector": "title", "path": "/customize/*", "type": "before", "content": METATAG}
            ]
        )

        assert customize_output(outside, config) is False
        assert customize_output(inside, config) is True

        assert outside.read_text(encoding="utf-8") == HTML_BASE
        assert marker(METATAG) in inside.read_text(encoding="utf-8")

    def test_check_path_with_list(self) -> None:
        patterns = ["/blog/*", "/about.html"]

        assert check_path("public/about.html", patterns, "public")
        assert check_path("public/blog/2024/post.html", patterns, "public")
        assert not check_path("public/index.html", patterns, "public")

    def test_check_path_is_case_sensitive_and_matches_dotfiles(self) -> None:
        assert not check_path("public/Blog/post.html", ["/blog/*"], "public")
        assert check_path("public/blog/.hidden.html", ["/blog/*"], "public")


class TestCustomizeFiles:
    def test_no_file_given(self, site: Path, make_config, capsys) -> None:
        failures = customize_files([], make_config())

        assert failures == 0
        assert capsys.readouterr().err == "No source file given\n"

    def test_failure_does_not_stop_other_files(self, html_file: Path, make_config, capsys) -> None:
        config = make_config(templates=[{"selector": "title", "content": METATAG}])
        missing = Path("public_html/missing.html")

        failures = customize_files([missing, html_file], config)

        assert failures == 1
        assert "missing.html" in capsys.readouterr().err
        assert marker(METATAG) in html_file.read_text(encoding="utf-8")

    def test_workers_customize_every_file(self, site: Path, make_config) -> None:
        paths = []
        for i in range(5):
            path = Path(f"public_html/page{i}.html")
            path.write_text(HTML_BASE, encoding="utf-8")
            paths.append(path)
        config = make_config(templates=[{"selector": "title", "content": METATAG}], workers=3)

        assert customize_files(paths + paths, config) == 0

        for path in paths:
            assert path.read_text(encoding="utf-8").count(marker(METATAG)) == 1

    def test_same_file_under_two_spellings(self, html_file: Path, make_config, capsys) -> None:
        config = make_config(templates=[{"selector": "title", "content": METATAG}], workers=2)

        assert customize_files([html_file, html_file.resolve()], config) == 0

        assert html_file.read_text(encoding="utf-8").count(marker(METATAG)) == 1
        assert "Customized 1 of 1 file(s)." in capsys.readouterr().out


class TestHelpers:
    def test_check_line(self) -> None:
        assert check_line(METATAG) == f" Neruda Template: {md5(METATAG)} "

    def test_format_content_without_record(self, make_config) -> None:
        config = make_config()

        assert format_content("%a (%l) 100%% %t", config) == "Jane Doe (fr) 100% "

    def test_template_rule_defaults(self) -> None:
        rule = TemplateRule.from_mapping({"selector": "title", "content": "x", "type": "sideways"})

        assert rule.position == "after"
        assert rule.path == ()
        assert not rule.inert
