from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest
import structlog
from structlog.testing import capture_logs

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def log_events() -> Iterator[list[dict[str, Any]]]:
    with capture_logs() as events:
        yield events


@pytest.fixture
def logger(log_events: list[dict[str, Any]]) -> Any:  # noqa: ANN401
    return structlog.get_logger("export_codebase.tests")

