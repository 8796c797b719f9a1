"""Shared fixtures: every test gets its own data directory."""

from __future__ import annotations

from pathlib import Path

import pytest

from ledger import build_services
from ledger.storage import JSONStorage


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture
def storage(data_dir: Path) -> JSONStorage:
    return JSONStorage(data_dir)


@pytest.fixture
def services(storage: JSONStorage):
    return build_services(storage)


@pytest.fixture
def categories(services):
    return services[0]


@pytest.fixture
def transactions(services):
    return services[1]


@pytest.fixture
def importer(services):
    return services[2]
