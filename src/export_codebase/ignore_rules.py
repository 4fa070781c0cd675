"""Gitignore-style rule sets evaluated with last-match-wins semantics."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pathspec.patterns.gitwildmatch import GitWildMatchPattern, GitWildMatchPatternError

from export_codebase.config import host_is_case_sensitive
from export_codebase.exceptions import InvalidIgnorePatternError

if TYPE_CHECKING:
    from collections.abc import Iterable


@dataclass(frozen=True)
class IgnoreRule:
    """One compiled pattern. `exclude` is False for a `!` negation."""

    pattern: str
    regex: re.Pattern[str]
    exclude: bool


def normalize_rel_path(path: str) -> str:
    """Normalize a relative path for matching.

    Args:
        path (str): relative path, possibly with backslashes or a leading `./`

    Returns:
        str: the path with forward slashes and no leading `./` or `/`
    """
    norm = path.replace("\\", "/")
    while norm.startswith("./"):
        norm = norm[2:]
    return norm.lstrip("/")


class IgnoreRuleSet:
    """Ordered gitignore-dialect rules.

    Rules are only ever appended. Evaluation walks them in load order and the
    last matching rule decides, so a later `!pattern` re-includes a path an
    earlier pattern excluded.
    """

    def __init__(self, *, case_sensitive: bool | None = None) -> None:
        self.case_sensitive = host_is_case_sensitive() if case_sensitive is None else case_sensitive
        self._rules: list[IgnoreRule] = []

    def __len__(self) -> int:
        return len(self._rules)

    def _compile(self, pattern: str) -> IgnoreRule | None:
        try:
            regex, include = GitWildMatchPattern.pattern_to_regex(pattern)
        except GitWildMatchPatternError as e:
            raise InvalidIgnorePatternError(pattern=pattern, reason=str(e)) from e
        if regex is None or include is None:
            return None
        flags = 0 if self.case_sensitive else re.IGNORECASE
        return IgnoreRule(pattern=pattern, regex=re.compile(regex, flags), exclude=include)

    def load(self, patterns: Iterable[str]) -> int:
        """Add a batch of patterns (one per item, comments and blanks skipped).

        The whole batch is compiled before any rule is added, so an invalid
        pattern leaves the set unchanged.

        Args:
            patterns (Iterable[str]): gitignore lines

        Raises:
            InvalidIgnorePatternError: if a pattern cannot be compiled

        Returns:
            int: the number of rules added
        """
        compiled = [rule for rule in (self._compile(p) for p in patterns) if rule is not None]
        self._rules.extend(compiled)
        return len(compiled)

    def add(self, pattern: str) -> int:
        return self.load([pattern])

    def verdict(self, path: str, *, is_dir: bool = False) -> bool | None:
        """Evaluate `path` against every rule, last match wins.

        Args:
            path (str): path relative to the directory the rules apply to
            is_dir (bool): whether the path is a directory; directory-only
                patterns (trailing `/`) only match when True

        Returns:
            bool | None: True if ignored, False if re-included by a negation,
                None if no rule matched
        """
        target = normalize_rel_path(path)
        if not target:
            return None
        if is_dir:
            target = target.rstrip("/") + "/"
        result: bool | None = None
        for rule in self._rules:
            if rule.regex.match(target) is not None:
                result = rule.exclude
        return result

    def matches(self, path: str, *, is_dir: bool = False) -> bool:
        return self.verdict(path, is_dir=is_dir) is True
