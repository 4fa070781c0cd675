from __future__ import annotations

from typing import TYPE_CHECKING

from export_codebase.config import DEFAULT_IGNORE_FILE, HARDCODED_IGNORES, is_binary_path
from export_codebase.exceptions import InvalidIgnorePatternError
from export_codebase.ignore_rules import IgnoreRuleSet, normalize_rel_path

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger


def load_ignore_rules(
    root: Path,
    logger: FilteringBoundLogger,
    *,
    filename: str = DEFAULT_IGNORE_FILE,
    case_sensitive: bool | None = None,
) -> IgnoreRuleSet:
    """Load the project's ignore file into a fresh rule set.

    A missing, unreadable or invalid ignore file is not fatal: a warning is
    logged and the returned set only holds the rules loaded so far.

    Args:
        root (Path): project root
        logger (FilteringBoundLogger): run logger
        filename (str): ignore file name, relative to `root`
        case_sensitive (bool | None): matching mode, None follows the host

    Returns:
        IgnoreRuleSet: the loaded rules
    """
    rules = IgnoreRuleSet(case_sensitive=case_sensitive)
    path = root / filename
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(
            "%s not found or unreadable. Proceeding with hardcoded exclusions only.",
            filename,
            error=str(e),
        )
        return rules
    try:
        count = rules.load(text.splitlines())
    except InvalidIgnorePatternError as e:
        logger.warning(
            "%s contains an invalid pattern %r; its rules were not applied.",
            filename,
            e.pattern,
            error=e.reason,
        )
        return rules
    logger.info("%s rules loaded.", filename, rules=count)
    return rules


def output_rel_path(root: Path, output: Path) -> str | None:
    """Relative POSIX path of the output artifact, or None if it lies outside `root`.

    Returns:
        str | None: the relative path, if any
    """
    target = output if output.is_absolute() else root / output
    try:
        return target.resolve().relative_to(root.resolve()).as_posix()
    except ValueError:
        return None


class ExclusionPolicy:
    """Single decision point for what the walk keeps.

    Layers, in order: hidden entries, hardcoded rules, the output artifact,
    the ignore-file rules, then (files only) the binary extension denylist.
    """

    def __init__(
        self,
        ignore_rules: IgnoreRuleSet | None = None,
        *,
        output_rel: str | None = None,
        include_hidden: bool = False,
        case_sensitive: bool | None = None,
        hardcoded: Iterable[str] = HARDCODED_IGNORES,
    ) -> None:
        self.ignore_rules = ignore_rules if ignore_rules is not None else IgnoreRuleSet(case_sensitive=case_sensitive)
        self.case_sensitive = self.ignore_rules.case_sensitive if case_sensitive is None else case_sensitive
        self.hardcoded = IgnoreRuleSet(case_sensitive=self.case_sensitive)
        self.hardcoded.load(hardcoded)
        self.include_hidden = include_hidden
        self.output_rel = self._fold(normalize_rel_path(output_rel)) if output_rel else None

    @classmethod
    def for_project(
        cls,
        root: Path,
        output: Path,
        logger: FilteringBoundLogger,
        *,
        include_hidden: bool = False,
        ignore_file: str = DEFAULT_IGNORE_FILE,
        case_sensitive: bool | None = None,
    ) -> ExclusionPolicy:
        rules = load_ignore_rules(root, logger, filename=ignore_file, case_sensitive=case_sensitive)
        return cls(
            rules,
            output_rel=output_rel_path(root, output),
            include_hidden=include_hidden,
            case_sensitive=rules.case_sensitive,
        )

    def _fold(self, path: str) -> str:
        return path if self.case_sensitive else path.casefold()

    def should_exclude(self, rel_path: str, *, is_dir: bool) -> bool:
        """Decide whether an entry is dropped from both the file list and the preview.

        Args:
            rel_path (str): path relative to the project root
            is_dir (bool): whether the entry is a directory

        Returns:
            bool: True if the entry (and, for a directory, everything below it) is excluded
        """
        rel = normalize_rel_path(rel_path).rstrip("/")
        name = rel.rsplit("/", 1)[-1]
        user_verdict = self.ignore_rules.verdict(rel, is_dir=is_dir)

        if name.startswith(".") and not self.include_hidden and user_verdict is not False:
            return True
        if self.hardcoded.matches(rel, is_dir=is_dir):
            return True
        if not is_dir and self.output_rel is not None and self._fold(rel) == self.output_rel:
            return True
        if user_verdict is True:
            return True
        return not is_dir and is_binary_path(name)
