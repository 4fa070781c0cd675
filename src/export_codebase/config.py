from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, computed_field

DEFAULT_OUTPUT_FILENAME = "codebase.txt"
DEFAULT_IGNORE_FILE = ".gitignore"
STRUCTURE_HEADER = "// Project structure"
FILE_MARKER_PREFIX = "// "

HARDCODED_IGNORES: tuple[str, ...] = (
    # version control
    ".git",
    ".svn",
    ".hg",
    ".bzr",
    # dependencies
    "node_modules/",
    "bower_components/",
    "jspm_packages/",
    ".pnpm-store/",
    ".yarn/",
    ".venv/",
    "venv/",
    "__pycache__/",
    # build and tool output
    "dist/",
    "build/",
    "out/",
    "coverage/",
    ".next/",
    ".nuxt/",
    ".svelte-kit/",
    ".turbo/",
    ".cache/",
    ".parcel-cache/",
    ".mypy_cache/",
    ".pytest_cache/",
    ".ruff_cache/",
    # lock files
    "package-lock.json",
    "npm-shrinkwrap.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "bun.lockb",
    "poetry.lock",
    "Pipfile.lock",
    "uv.lock",
    "Cargo.lock",
    "composer.lock",
    # environment files
    ".env",
    ".env.*",
    "!.env.example",
    # OS artifacts
    ".DS_Store",
    "Thumbs.db",
    "desktop.ini",
    # logs
    "*.log",
    "npm-debug.log*",
    "yarn-debug.log*",
    "yarn-error.log*",
)

BINARY_EXTENSIONS: frozenset[str] = frozenset({
    # images
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".bmp",
    ".ico",
    ".icns",
    ".webp",
    ".tif",
    ".tiff",
    ".psd",
    ".heic",
    ".avif",
    # audio
    ".mp3",
    ".wav",
    ".ogg",
    ".flac",
    ".aac",
    ".m4a",
    ".wma",
    # video
    ".mp4",
    ".m4v",
    ".avi",
    ".mov",
    ".mkv",
    ".webm",
    ".wmv",
    ".flv",
    # archives
    ".zip",
    ".tar",
    ".gz",
    ".tgz",
    ".bz2",
    ".xz",
    ".zst",
    ".7z",
    ".rar",
    ".jar",
    ".war",
    # executables and objects
    ".exe",
    ".dll",
    ".so",
    ".dylib",
    ".bin",
    ".o",
    ".a",
    ".lib",
    ".obj",
    ".class",
    ".pyc",
    ".pyo",
    ".wasm",
    ".msi",
    ".dmg",
    ".iso",
    ".deb",
    ".rpm",
    # fonts
    ".ttf",
    ".otf",
    ".woff",
    ".woff2",
    ".eot",
    # documents and data blobs
    ".pdf",
    ".doc",
    ".docx",
    ".xls",
    ".xlsx",
    ".ppt",
    ".pptx",
    ".odt",
    ".sqlite",
    ".sqlite3",
    ".db",
    ".pkl",
    ".npy",
    ".npz",
    ".parquet",
    ".h5",
    ".lockb",
})


def host_is_case_sensitive() -> bool:
    """Guess whether the host filesystem compares names case-sensitively.

    Returns:
        bool: False on Windows and macOS, True elsewhere.
    """
    return sys.platform not in {"win32", "darwin"}


def is_binary_path(path: str) -> bool:
    """Check a path against the binary extension denylist (case-insensitive).

    Args:
        path (str): file name or relative path

    Returns:
        bool: True if the extension is a known non-text format
    """
    return Path(path).suffix.lower() in BINARY_EXTENSIONS


class FileRecord(BaseModel):
    """One eligible file and its decoded content.

    Attributes:
        rel: Path relative to the project root, with POSIX separators.
        content: UTF-8 decoded file content.
    """

    model_config = ConfigDict(frozen=True)

    rel: str = Field(..., description="File path relative to the project root")
    content: str = Field(..., description="UTF-8 decoded file content")


class RunResult(BaseModel):
    """Summary of a completed write, or a failure marker without metrics."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    success: bool = Field(..., description="Whether the artifact was written")
    output_path: Path | None = Field(default=None, description="Absolute output path")
    byte_size: int | None = Field(default=None, ge=0, description="Artifact size in bytes")
    total_lines: int | None = Field(default=None, ge=0, description="Artifact line count")
    file_count: int | None = Field(default=None, ge=0, description="Number of files included")

    @computed_field
    @property
    def is_empty(self) -> bool:
        """Whether the run produced no content at all."""
        return not self.file_count and not self.byte_size


@dataclass
class TreeNode:
    """A directory entry kept in the structure preview."""

    name: str
    is_dir: bool
    children: list[TreeNode] = field(default_factory=list)
    error: str | None = None

    def iter_file_paths(self, prefix: str = "") -> list[str]:
        """Return the relative paths of every file leaf below this node.

        Args:
            prefix (str): path of this node relative to the root ("" for the root)

        Returns:
            list[str]: POSIX relative paths, in tree order
        """
        out: list[str] = []
        stack = [(child, prefix) for child in reversed(self.children)]
        while stack:
            node, base = stack.pop()
            rel = f"{base}/{node.name}" if base else node.name
            if node.is_dir:
                stack.extend((child, rel) for child in reversed(node.children))
            else:
                out.append(rel)
        return out


@dataclass
class WalkResult:
    """The flat file list and the structure tree of one traversal."""

    files: list[str]
    tree: TreeNode
