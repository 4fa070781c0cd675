#  -*- coding: utf-8 -*-
"""
export_codebase — Concatenate a project's text files into a single file.

Overview
--------
Walks the current project directory, drops everything that is not useful to
a reader (or an LLM), and writes one text artifact containing:

1) a **project structure** preview rendered as a tree, then
2) every remaining text file, in path order, preceded by a `// <path>` marker.

What is left out:
   - files and directories matched by `.gitignore`,
   - version control, dependency and build directories (`.git`, `node_modules`,
     `dist`, `build`, `out`, ...),
   - lock files, `.env` files (except `.env.example`), OS artifacts, logs,
   - hidden entries unless `--include-hidden` is given,
   - the output file itself,
   - binary files, recognised by extension.

Usage
-----
Run `python -m export_codebase.cli --help` for full options. Common examples:
    - Default output (codebase.txt in the project root):
        uv run export-codebase

    - Custom output, only errors and the summary on screen:
        uv run export-codebase --output context.txt --silent

    - Include dot files and folders, log to a file:
        uv run export-codebase --include-hidden --log-file export.log
"""

from __future__ import annotations

import argparse
from typing import TYPE_CHECKING

from pydantic import ValidationError

from export_codebase import __version__
from export_codebase.config import DEFAULT_IGNORE_FILE, DEFAULT_OUTPUT_FILENAME, RunResult
from export_codebase.exclusion import ExclusionPolicy
from export_codebase.file_manipulation import load_contents, now_iso, render_tree_lines, walk_project
from export_codebase.logging import setup_logging
from export_codebase.output_construction import assemble, build_placeholder, render_summary, write_output
from export_codebase.settings import Settings, env_defaults

if TYPE_CHECKING:
    from collections.abc import Sequence

    from structlog.typing import FilteringBoundLogger

EPILOG = f"""\
Exclusions by default:
  - Files and directories listed in {DEFAULT_IGNORE_FILE}
  - Standard ignored patterns: node_modules, .git, common build outputs (dist, build, out), etc.
  - Environment files (.env, .env.*, except .env.example)
  - Lock files (package-lock.json, yarn.lock, pnpm-lock.yaml, ...)
  - The output file itself
  - Binary files (based on common extensions)
"""


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser.

    Returns:
        argparse.ArgumentParser: the parser; options left unset parse to None
    """
    p = argparse.ArgumentParser(
        prog="export-codebase",
        description="Concatenates relevant project text files into a single output file.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help=f'Output file name, relative to the project root (default: "{DEFAULT_OUTPUT_FILENAME}").',
    )
    p.add_argument(
        "-s",
        "--silent",
        action="store_true",
        default=None,
        help="Suppress informational logs (errors and final summary will still be shown).",
    )
    p.add_argument(
        "--include-hidden",
        action="store_true",
        default=None,
        help="Process hidden files and folders (those starting with '.') that are not otherwise ignored.",
    )
    p.add_argument("--root", type=str, default=None, help="Project root (default: current directory).")
    p.add_argument(
        "--ignore-file",
        type=str,
        default=None,
        help=f'Ignore file relative to the project root (default: "{DEFAULT_IGNORE_FILE}").',
    )
    case = p.add_mutually_exclusive_group()
    case.add_argument(
        "--case-sensitive",
        dest="case_sensitive",
        action="store_const",
        const=True,
        default=None,
        help="Match ignore patterns case-sensitively.",
    )
    case.add_argument(
        "--case-insensitive",
        dest="case_sensitive",
        action="store_const",
        const=False,
        help="Match ignore patterns case-insensitively.",
    )
    p.add_argument("--max-workers", type=int, default=None, help="Threads used to read files.")
    p.add_argument("--log-file", type=str, default=None, help="Log file path.")
    p.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    return p


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    """Parse CLI arguments on top of the environment defaults.

    Raises:
        ValidationError: if the combined values are not valid settings

    Returns:
        Settings: the run configuration
    """
    args = build_parser().parse_args(argv)
    values = env_defaults()
    values.update({k: v for k, v in vars(args).items() if v is not None})
    return Settings(**values)


def run_export(settings: Settings, logger: FilteringBoundLogger) -> RunResult:
    """Run one export: filter, walk, read, assemble and write.

    Args:
        settings (Settings): run configuration
        logger (FilteringBoundLogger): run logger

    Returns:
        RunResult: outcome of the write
    """
    root = settings.root.resolve()
    output_path = settings.output_path
    logger.info("Starting export-codebase... Output will be %s", str(settings.output))

    policy = ExclusionPolicy.for_project(
        root,
        output_path,
        logger,
        include_hidden=settings.include_hidden,
        ignore_file=settings.ignore_file,
        case_sensitive=settings.case_sensitive,
    )
    walk = walk_project(root, policy, logger)
    records = load_contents(walk.files, root, logger, max_workers=settings.max_workers)

    if records:
        text, total_lines = assemble(records, render_tree_lines(walk.tree))
    else:
        logger.info("No processable text files found in %s.", str(root))
        text, total_lines = build_placeholder(root, now_iso())

    return write_output(
        output_path,
        text,
        total_lines=total_lines,
        file_count=len(records),
        logger=logger,
    )


def main(argv: Sequence[str] | None = None) -> int:
    try:
        settings = parse_args(argv)
    except ValidationError as e:
        setup_logging().error(
            "Invalid configuration",
            errors=[f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()],
        )
        return 1
    logger = setup_logging(settings.log_file or None, silent=settings.silent)

    try:
        result = run_export(settings, logger)
    except Exception:
        logger.exception("A critical unexpected error occurred")
        return 1

    if not result.success:
        logger.error("Failed to create %s. See previous errors.", str(settings.output))
        return 1

    if result.is_empty:
        logger.warning("Output file %s was created but contains no content.", str(result.output_path))
    else:
        print(render_summary(result))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
