from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from pathspec.patterns.gitwildmatch import GitWildMatchPattern, GitWildMatchPatternError

from export_codebase.exceptions import InvalidIgnorePatternError
from export_codebase.ignore_rules import IgnoreRuleSet, normalize_rel_path

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


@pytest.mark.unit
def test_last_matching_pattern_wins() -> None:
    rules = IgnoreRuleSet(case_sensitive=True)
    rules.load(["*.txt", "!keep.txt"])

    assert rules.matches("notes.txt")
    assert not rules.matches("keep.txt")
    assert rules.verdict("keep.txt") is False
    assert rules.verdict("main.py") is None


@pytest.mark.unit
def test_later_pattern_overrides_earlier_negation() -> None:
    rules = IgnoreRuleSet(case_sensitive=True)
    rules.load(["*.txt", "!keep.txt"])
    rules.add("keep.txt")

    assert rules.matches("keep.txt")


@pytest.mark.unit
def test_directory_only_pattern_needs_a_directory() -> None:
    rules = IgnoreRuleSet(case_sensitive=True)
    rules.load(["generated/"])

    assert rules.matches("generated", is_dir=True)
    assert rules.matches("src/generated", is_dir=True)
    assert not rules.matches("generated", is_dir=False)


@pytest.mark.unit
def test_double_star_and_anchored_patterns() -> None:
    rules = IgnoreRuleSet(case_sensitive=True)
    rules.load(["docs/**/*.md", "/top.txt"])

    assert rules.matches("docs/guide/intro/start.md")
    assert rules.matches("docs/readme.md")
    assert not rules.matches("src/readme.md")
    assert rules.matches("top.txt")
    assert not rules.matches("nested/top.txt")


@pytest.mark.unit
def test_comments_and_blank_lines_are_skipped() -> None:
    rules = IgnoreRuleSet(case_sensitive=True)

    added = rules.load(["# build output", "", "   "])

    assert added == 0
    assert len(rules) == 0
    assert not rules.matches("# build output")


@pytest.mark.unit
def test_paths_are_normalized_before_matching() -> None:
    rules = IgnoreRuleSet(case_sensitive=True)
    rules.load(["logs/*.log"])

    assert rules.matches("logs\\server.log")
    assert rules.matches("./logs/server.log")
    assert normalize_rel_path(".\\a\\b.txt") == "a/b.txt"


@pytest.mark.unit
def test_case_sensitivity_is_configurable() -> None:
    sensitive = IgnoreRuleSet(case_sensitive=True)
    insensitive = IgnoreRuleSet(case_sensitive=False)
    sensitive.load(["*.LOG"])
    insensitive.load(["*.LOG"])

    assert not sensitive.matches("server.log")
    assert insensitive.matches("server.log")


@pytest.mark.unit
def test_invalid_pattern_leaves_the_set_unchanged(mocker: MockerFixture) -> None:
    rules = IgnoreRuleSet(case_sensitive=True)
    rules.load(["*.tmp"])
    mocker.patch.object(
        GitWildMatchPattern,
        "pattern_to_regex",
        side_effect=[("^ok$", True), GitWildMatchPatternError("bad pattern")],
    )

    with pytest.raises(InvalidIgnorePatternError) as exc_info:
        rules.load(["ok", "broken["])

    assert exc_info.value.pattern == "broken["
    assert len(rules) == 1
