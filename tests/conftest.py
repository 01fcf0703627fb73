"""Shared test fixtures for the darkheim test suite.

The _isolate_darkheim_config fixture (autouse) prevents DarkheimConfig from
reading the user's real ~/.darkheim/config.json during tests.

The _reset_service_provider fixture (autouse) gives every test a process
that has not constructed its ServiceProvider yet.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from loguru import logger

from darkheim.config.schema import DarkheimConfig
from darkheim.di import Container
from darkheim.provider import ServiceProvider


@pytest.fixture(autouse=True)
def _isolate_darkheim_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point DarkheimConfig's json_file at an empty temp file for every test."""
    empty_config = tmp_path / "darkheim_test_config.json"
    empty_config.write_text("{}", encoding="utf-8")
    monkeypatch.setitem(DarkheimConfig.model_config, "json_file", empty_config)


@pytest.fixture(autouse=True)
def _reset_service_provider(monkeypatch: pytest.MonkeyPatch) -> None:
    """Undo any ServiceProvider.get_instance() a test performs."""
    monkeypatch.setattr(ServiceProvider, "_instance", None)


@pytest.fixture
def container() -> Container:
    return Container()


@pytest.fixture
def config(tmp_path: Path) -> DarkheimConfig:
    """Config with an in-memory database and logs under the test's tmp dir."""
    return DarkheimConfig(
        database={"path": ":memory:"},
        logging={"log_dir": str(tmp_path / "logs")},
    )


@pytest.fixture
def provider(container: Container, config: DarkheimConfig) -> ServiceProvider:
    """A provider with the core services registered but nothing built yet."""
    container.instance(DarkheimConfig, config)
    service_provider = ServiceProvider(container)
    service_provider.register_core_services()
    return service_provider


@pytest.fixture
def log_messages() -> Iterator[list[str]]:
    """Collect every loguru message emitted while the test runs."""
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
