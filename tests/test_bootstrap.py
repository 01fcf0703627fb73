"""Tests for the application bootstrap sequence."""

from __future__ import annotations

from pathlib import Path

import pytest

from darkheim.bootstrap import bootstrap
from darkheim.config.schema import DarkheimConfig
from darkheim.di import ContainerFrozenError
from darkheim.provider import SITE_SETTINGS_KEY, ServiceProvider
from darkheim.services import Database, LoguruLogger, SiteSettingsService


def test_bootstrap_wires_process_provider(config: DarkheimConfig):
    provider = bootstrap(config, configure_logging=False)

    assert ServiceProvider.get_instance() is provider
    assert provider.container.get(DarkheimConfig) is config
    assert provider.container.get(SITE_SETTINGS_KEY) == {}
    assert provider.container.frozen is True


def test_bootstrap_is_reentrant(config: DarkheimConfig):
    first = bootstrap(config, configure_logging=False)
    assert bootstrap(DarkheimConfig(), configure_logging=False) is first


def test_bindings_are_frozen_after_bootstrap(config: DarkheimConfig):
    provider = bootstrap(config, configure_logging=False)
    with pytest.raises(ContainerFrozenError):
        provider.container.value("late", True)


def test_site_settings_reach_the_mailer(tmp_path: Path):
    db_path = str(tmp_path / "darkheim.db")
    seed = Database(LoguruLogger(), db_path)
    SiteSettingsService(seed).set("email", "from_address", "admin@darkheim.test")
    seed.close()

    config = DarkheimConfig(database={"path": db_path})
    provider = bootstrap(config, configure_logging=False)

    site_settings = provider.container.get(SITE_SETTINGS_KEY)
    assert site_settings["email"]["from_address"]["value"] == "admin@darkheim.test"
    assert provider.get_mailer().from_address == "admin@darkheim.test"
