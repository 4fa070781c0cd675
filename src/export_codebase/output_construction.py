from __future__ import annotations

import contextlib
import io
import os
import stat
import tempfile
from typing import TYPE_CHECKING

from export_codebase.config import FILE_MARKER_PREFIX, RunResult
from export_codebase.exceptions import OutputWriteError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger

    from export_codebase.config import FileRecord

_KB = 1024
_MB = 1024 * 1024


def assemble(records: Sequence[FileRecord], preview_lines: Sequence[str]) -> tuple[str, int]:
    """Build the output artifact from the structure preview and the file records.

    Files are written in ascending relative-path order, each as a marker line,
    a blank line, the stripped content and a blank line. The returned line
    count equals the number of newline characters in the artifact.

    Args:
        records (Sequence[FileRecord]): loaded files, in any order
        preview_lines (Sequence[str]): rendered structure preview

    Returns:
        tuple[str, int]: the artifact text and its total line count
    """
    out = io.StringIO()
    out.write("\n".join(preview_lines))
    out.write("\n\n")
    total_lines = len(preview_lines) + 1

    for rec in sorted(records, key=lambda r: r.rel):
        body = rec.content.strip()
        out.write(f"{FILE_MARKER_PREFIX}{rec.rel}\n\n{body}\n\n")
        total_lines += body.count("\n") + 4

    raw = out.getvalue()
    text = raw.rstrip()
    # newlines lost to the trailing trim, minus the one put back
    total_lines -= raw[len(text) :].count("\n") - 1
    return text + "\n", total_lines


def build_placeholder(root: Path, generated_at: str) -> tuple[str, int]:
    """Artifact written when no file survives filtering.

    Args:
        root (Path): the searched project root
        generated_at (str): timestamp to record

    Returns:
        tuple[str, int]: the artifact text and its total line count
    """
    lines = [
        "// No processable text files found.",
        f"// Searched root: {root}",
        f"// Generated at: {generated_at}",
    ]
    return "\n".join(lines) + "\n", len(lines)


def _read_umask() -> int:
    mask = os.umask(0o022)
    os.umask(mask)
    return mask


_UMASK = _read_umask()


def _target_file_mode(path: Path) -> int:
    """Mode for the artifact: the replaced file's mode, or the umask default for a new file."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        return 0o666 & ~_UMASK


def _write_atomic(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    mode = _target_file_mode(path)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
        os.chmod(tmp, mode)
        os.replace(tmp, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp)
        raise


def write_artifact(path: Path, text: str) -> int:
    """Write the artifact through a temporary file and return its size.

    Raises:
        OutputWriteError: if encoding, writing, renaming or stat'ing the output fails

    Returns:
        int: size of the written file in bytes
    """
    try:
        _write_atomic(path, text)
        return path.stat().st_size
    except (OSError, UnicodeEncodeError) as e:
        raise OutputWriteError(path=path, reason=str(e)) from e


def write_output(
    path: Path,
    text: str,
    *,
    total_lines: int,
    file_count: int,
    logger: FilteringBoundLogger,
) -> RunResult:
    """Write the artifact and report the outcome.

    Args:
        path (Path): absolute output location
        text (str): artifact content
        total_lines (int): line count computed by `assemble` or `build_placeholder`
        file_count (int): number of files included
        logger (FilteringBoundLogger): run logger

    Returns:
        RunResult: metrics on success, a failure marker otherwise
    """
    try:
        size = write_artifact(path, text)
    except OutputWriteError as e:
        logger.error("Failed to write output file %s", str(e.path), error=e.reason)
        return RunResult(success=False, output_path=path)
    return RunResult(
        success=True,
        output_path=path,
        byte_size=size,
        total_lines=total_lines,
        file_count=file_count,
    )


def format_file_size(size: int) -> str:
    """Human readable file size.

    Returns:
        str: e.g. "512 B", "1.50 KB", "2.00 MB"
    """
    if size < _KB:
        return f"{size} B"
    if size < _MB:
        return f"{size / _KB:.2f} KB"
    return f"{size / _MB:.2f} MB"


def render_summary(result: RunResult) -> str:
    """Render the end-of-run summary block.

    Returns:
        str: the summary, one item per line
    """
    lines = [
        "",
        "--- Summary ---",
        f"✔ Processed {result.file_count} files.",
        f"  Total lines written: {result.total_lines}",
        f"  Output file: {result.output_path}",
        f"  File size: {format_file_size(result.byte_size or 0)}",
        "---------------",
    ]
    return "\n".join(lines)
