"""
Pytest configuration file.
"""
from typing import Iterator

import pytest

from kmspatch.environment import (
    DEADLINE_SECONDS_VARIABLE_NAME,
    MAX_WORKERS_VARIABLE_NAME,
    REGION_VARIABLE_NAME,
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for variable_name in (
        REGION_VARIABLE_NAME,
        MAX_WORKERS_VARIABLE_NAME,
        DEADLINE_SECONDS_VARIABLE_NAME,
    ):
        monkeypatch.delenv(variable_name, raising=False)
    yield
