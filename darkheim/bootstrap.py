"""Application bootstrap: build the container and wire the core services.

Mirrors the start of every request in a per-process deployment:
1. create the container and the process-wide ServiceProvider
2. publish the loaded config as a container instance
3. register the core services
4. load site settings from the database into the ``site_settings`` value
5. freeze the binding table
"""

from __future__ import annotations

import sqlite3

from loguru import logger

from darkheim.config import DarkheimConfig, load_config
from darkheim.di import Container
from darkheim.logging import setup_logging
from darkheim.provider import SITE_SETTINGS_KEY, ServiceProvider


def bootstrap(
    config: DarkheimConfig | None = None,
    *,
    configure_logging: bool = True,
    verbose: bool = False,
    quiet: bool = False,
) -> ServiceProvider:
    """Return the process-wide provider, bootstrapping it on the first call."""
    if ServiceProvider.is_initialized():
        return ServiceProvider.get_instance()

    config = config or load_config()
    if configure_logging:
        setup_logging(verbose=verbose, quiet=quiet, log_dir=config.logging.log_dir)

    container = Container()
    provider = ServiceProvider.get_instance(container)
    container.instance(DarkheimConfig, config)
    provider.register_core_services()

    app_logger = provider.get_logger()
    try:
        site_settings = provider.get_site_settings_service().get_all()
    except sqlite3.Error as exc:
        app_logger.error("Failed to load site settings", {"error": str(exc)})
        site_settings = {}
    else:
        total = sum(len(group) for group in site_settings.values())
        app_logger.info("Configuration loaded", {"total_settings": total})
    container.value(SITE_SETTINGS_KEY, site_settings)

    container.freeze()
    logger.debug("Bootstrap complete for {}", config.app.name)
    return provider
