from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from export_codebase.config import STRUCTURE_HEADER, FileRecord, TreeNode, WalkResult

if TYPE_CHECKING:
    from collections.abc import Sequence

    from structlog.typing import FilteringBoundLogger

    from export_codebase.exclusion import ExclusionPolicy


def now_iso() -> str:
    """Return the current date and time in ISO 8601 format with timezone.

    Returns:
        str: the current date and time in ISO 8601 format with timezone
    """
    return datetime.now(UTC).astimezone().isoformat(timespec="seconds")


def _entry_sort_key(node: TreeNode) -> tuple[int, str]:
    return (0 if node.is_dir else 1, node.name)


def _list_directory(
    directory: Path,
    rel_dir: str,
    policy: ExclusionPolicy,
    logger: FilteringBoundLogger,
) -> list[tuple[TreeNode, str]]:
    """List one directory and keep the entries the policy allows.

    Symlinked directories are not followed; anything that is neither a
    directory nor a regular file (sockets, broken links, ...) is skipped.
    Entries whose name cannot be encoded as UTF-8 are skipped with a warning.

    Returns:
        list[tuple[TreeNode, str]]: surviving (node, relative path) pairs, sorted
    """
    kept: list[tuple[TreeNode, str]] = []
    with os.scandir(directory) as it:
        for entry in it:
            rel = f"{rel_dir}/{entry.name}" if rel_dir else entry.name
            try:
                entry.name.encode("utf-8")
            except UnicodeEncodeError:
                logger.warning("Skipping %r: its name is not valid UTF-8.", rel)
                continue
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                is_file = not is_dir and entry.is_file()
            except OSError:
                continue
            if not is_dir and not is_file:
                continue
            if policy.should_exclude(rel, is_dir=is_dir):
                continue
            kept.append((TreeNode(name=entry.name, is_dir=is_dir), rel))
    kept.sort(key=lambda pair: _entry_sort_key(pair[0]))
    return kept


def walk_project(root: Path, policy: ExclusionPolicy, logger: FilteringBoundLogger) -> WalkResult:
    """Walk `root` once, producing the flat file list and the structure tree.

    Excluded directories are pruned before they are listed. A directory that
    cannot be listed is kept in the tree with its `error` set and the walk
    carries on with its siblings.

    Args:
        root (Path): project root
        policy (ExclusionPolicy): what to keep
        logger (FilteringBoundLogger): run logger

    Returns:
        WalkResult: eligible files (POSIX paths relative to `root`, in tree order) and the tree
    """
    tree = TreeNode(name=root.name or str(root), is_dir=True)
    files: list[str] = []
    stack: list[tuple[TreeNode, Path, str]] = [(tree, root, "")]
    while stack:
        node, directory, rel_dir = stack.pop()
        try:
            children = _list_directory(directory, rel_dir, policy, logger)
        except OSError as e:
            node.error = e.strerror or str(e)
            logger.warning("Could not read directory %s. Skipping its contents.", rel_dir or str(root), error=str(e))
            continue
        node.children = [child for child, _ in children]
        # reversed so the first directory is expanded first
        for child, rel in reversed(children):
            if child.is_dir:
                stack.append((child, directory / child.name, rel))
    files.extend(tree.iter_file_paths())
    logger.info("Found %d eligible files.", len(files))
    return WalkResult(files=files, tree=tree)


def render_tree_lines(tree: TreeNode) -> list[str]:
    """Render the structure preview as box-drawing lines.

    Args:
        tree (TreeNode): root node returned by `walk_project`

    Returns:
        list[str]: the preview, starting with the structure header and the root name
    """
    lines = [STRUCTURE_HEADER, f"{tree.name}/"]
    if tree.error is not None:
        lines.append(f"└── [Error reading project root: {tree.error}]")
        return lines

    stack: list[tuple[TreeNode, str, bool]] = [
        (child, "", idx == len(tree.children) - 1) for idx, child in enumerate(tree.children)
    ]
    stack.reverse()
    while stack:
        node, prefix, last = stack.pop()
        branch = "└── " if last else "├── "
        lines.append(prefix + branch + node.name + ("/" if node.is_dir else ""))
        if not node.is_dir:
            continue
        ext = prefix + ("    " if last else "│   ")
        if node.error is not None:
            lines.append(f"{ext}└── [Error reading directory: {node.name}]")
            continue
        n = len(node.children)
        stack.extend((child, ext, idx == n - 1) for idx, child in reversed(list(enumerate(node.children))))
    return lines


def read_file_record(root: Path, rel: str) -> FileRecord:
    """Read one file as strict UTF-8.

    Raises:
        OSError: if the file cannot be read
        UnicodeDecodeError: if the bytes are not valid UTF-8

    Returns:
        FileRecord: the file and its content
    """
    content = (root / rel).read_bytes().decode("utf-8")
    return FileRecord(rel=rel, content=content)


def load_contents(
    rel_paths: Sequence[str],
    root: Path,
    logger: FilteringBoundLogger,
    *,
    max_workers: int | None = None,
) -> list[FileRecord]:
    """Read every eligible file concurrently.

    Reads are submitted to a thread pool and collected once all of them have
    finished. A file that fails to read or decode is logged and dropped; the
    rest of the batch is unaffected. Result order is not significant.

    Args:
        rel_paths (Sequence[str]): files to read, relative to `root`
        root (Path): project root
        logger (FilteringBoundLogger): run logger
        max_workers (int | None): thread pool size, executor default when None

    Returns:
        list[FileRecord]: the files that were read successfully
    """
    if not rel_paths:
        return []
    records: list[FileRecord] = []
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {rel: executor.submit(read_file_record, root, rel) for rel in rel_paths}
    for rel, future in futures.items():
        try:
            records.append(future.result())
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read file %s. Skipping.", rel, error=str(e))
    logger.info("Successfully read %d text files.", len(records))
    return records
