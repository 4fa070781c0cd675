from __future__ import annotations

import errno
from typing import TYPE_CHECKING, Any

import pytest

from export_codebase import cli, file_manipulation
from export_codebase.settings import Settings

if TYPE_CHECKING:
    from pathlib import Path

    from pytest_mock import MockerFixture


def write(root: Path, rel: str, content: str = "x") -> None:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def file_markers(text: str) -> list[str]:
    return [line[3:] for line in text.splitlines() if line.startswith("// ") and line != "// Project structure"]


@pytest.mark.integration
def test_export_keeps_only_eligible_files_in_order(tmp_path: Path, logger: Any) -> None:  # noqa: ANN401
    write(tmp_path, "a.txt", "hello")
    write(tmp_path, "b/c.txt", "world")
    write(tmp_path, "node_modules/x.js", "module.exports = 1")
    write(tmp_path, ".env", "SECRET=1")
    write(tmp_path, ".gitignore", "*.log\n")
    write(tmp_path, "server.log", "noise")

    result = cli.run_export(Settings(root=tmp_path), logger)

    assert result.success
    assert result.file_count == 2
    text = (tmp_path / "codebase.txt").read_text(encoding="utf-8")
    assert file_markers(text) == ["a.txt", "b/c.txt"]
    assert "// a.txt\n\nhello\n\n// b/c.txt\n\nworld\n" in text
    assert "node_modules" not in text
    assert ".env" not in text
    assert result.total_lines == text.count("\n")
    assert result.byte_size == len(text.encode("utf-8"))


@pytest.mark.integration
def test_export_of_binary_only_project_writes_the_placeholder(tmp_path: Path, logger: Any) -> None:  # noqa: ANN401
    (tmp_path / "logo.png").write_bytes(b"\x89PNG\r\n")
    (tmp_path / "font.woff2").write_bytes(b"wOF2")

    result = cli.run_export(Settings(root=tmp_path), logger)

    assert result.success
    assert result.file_count == 0
    text = (tmp_path / "codebase.txt").read_text(encoding="utf-8")
    assert text.startswith("// No processable text files found.")
    assert "Project structure" not in text
    assert result.total_lines == text.count("\n")


@pytest.mark.integration
def test_export_survives_an_unreadable_file(
    tmp_path: Path,
    mocker: MockerFixture,
    logger: Any,  # noqa: ANN401
    log_events: list[dict[str, Any]],
) -> None:
    write(tmp_path, "a.txt", "one")
    write(tmp_path, "locked.txt", "two")
    write(tmp_path, "z.txt", "three")
    real_read = file_manipulation.read_file_record

    def read(root: Path, rel: str) -> Any:  # noqa: ANN401
        if rel == "locked.txt":
            raise PermissionError(errno.EACCES, "Permission denied", rel)
        return real_read(root, rel)

    mocker.patch.object(file_manipulation, "read_file_record", side_effect=read)

    result = cli.run_export(Settings(root=tmp_path), logger)

    assert result.success
    assert result.file_count == 2
    text = (tmp_path / "codebase.txt").read_text(encoding="utf-8")
    assert file_markers(text) == ["a.txt", "z.txt"]
    warnings = [e["event"] for e in log_events if e["log_level"] == "warning"]
    assert "Could not read file locked.txt. Skipping." in warnings


@pytest.mark.integration
def test_repeated_runs_are_byte_identical(tmp_path: Path, logger: Any) -> None:  # noqa: ANN401
    write(tmp_path, "src/app.py", "print('hi')\n")
    write(tmp_path, "src/lib/util.py", "def f():\n    return 1\n")
    write(tmp_path, "README.md", "# Demo\n")
    settings = Settings(root=tmp_path, output="context.txt")

    cli.run_export(settings, logger)
    first = (tmp_path / "context.txt").read_bytes()
    cli.run_export(settings, logger)
    second = (tmp_path / "context.txt").read_bytes()

    assert first == second
    assert "context.txt" not in first.decode("utf-8")


@pytest.mark.integration
def test_preview_and_contents_agree(tmp_path: Path, logger: Any) -> None:  # noqa: ANN401
    write(tmp_path, ".gitignore", "generated/\n!.github/\n")
    write(tmp_path, "generated/client.py")
    write(tmp_path, ".github/ci.yml", "on: push")
    write(tmp_path, "docs/index.md", "docs")
    write(tmp_path, "pic.jpg")

    cli.run_export(Settings(root=tmp_path), logger)

    text = (tmp_path / "codebase.txt").read_text(encoding="utf-8")
    preview = text.split("\n\n", 1)[0]
    assert file_markers(text) == [".github/ci.yml", "docs/index.md"]
    assert "├── .github/" in preview
    assert "└── index.md" in preview
    assert "generated" not in preview
    assert "pic.jpg" not in preview
    assert ".gitignore" not in preview
