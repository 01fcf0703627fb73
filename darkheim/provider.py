"""Process-wide access point for the core services.

``ServiceProvider`` owns the container, declares every core binding in one
place (``register_core_services``) and exposes one typed getter per service.
Each getter is a plain ``container.make()`` call, so caching and lifetimes are
entirely the container's business.

In a per-request process, call ``ServiceProvider.get_instance(container)`` once
during bootstrap and ``ServiceProvider.get_instance()`` afterwards. Long-running
servers should build one provider at startup, call ``warm_up()`` and pass the
provider to handlers explicitly.
"""

from __future__ import annotations

import threading
from typing import Any, ClassVar, TypeVar

from loguru import logger

from darkheim.config.schema import DarkheimConfig
from darkheim.contracts import (
    AuthenticationInterface,
    CacheInterface,
    DatabaseInterface,
    FlashMessageInterface,
    LoggerInterface,
    MailerInterface,
    PasswordManagerInterface,
    SessionManagerInterface,
    TokenManagerInterface,
    UserRegistrationInterface,
)
from darkheim.di import Abstract, Container, ContainerError, describe
from darkheim.services import (
    AuthenticationService,
    CacheService,
    ConfigurationManager,
    Database,
    FlashMessageService,
    LoguruLogger,
    MailerService,
    NewsService,
    PasswordManager,
    SessionManager,
    SiteSettingsService,
    TokenManager,
    UserRegistrationService,
)

T = TypeVar("T")

SITE_SETTINGS_KEY = "site_settings"

# Wiring order: leaves first, deepest dependency chain last.
CORE_SERVICES: tuple[tuple[str, type], ...] = (
    ("logger", LoggerInterface),
    ("database", DatabaseInterface),
    ("cache", CacheInterface),
    ("flash_message", FlashMessageInterface),
    ("token_manager", TokenManagerInterface),
    ("password_manager", PasswordManagerInterface),
    ("mailer", MailerInterface),
    ("auth", AuthenticationInterface),
    ("user_registration", UserRegistrationInterface),
    ("site_settings", SiteSettingsService),
    ("news", NewsService),
    ("configuration_manager", ConfigurationManager),
    ("session_manager", SessionManagerInterface),
)


def optional(container: Container, abstract: type[T]) -> T | None:
    """Resolve an optional collaborator, or return None if it cannot be built.

    None is the documented "unavailable" marker; the failure is logged as a
    warning through the container's logger.
    """
    try:
        return container.make(abstract)
    except ContainerError as exc:
        container.make(LoggerInterface).warning(
            f"{describe(abstract)} unavailable, continuing without it",
            {"error": str(exc)},
        )
        return None


def _config(container: Container) -> DarkheimConfig:
    config = container.get(DarkheimConfig)
    if isinstance(config, DarkheimConfig):
        return config
    logger.warning("No DarkheimConfig registered in the container, using defaults")
    return DarkheimConfig()


def _email_settings(container: Container) -> dict[str, Any]:
    """Flatten the ``email`` group of the site-settings value, or {} if unusable."""
    site_settings = container.get(SITE_SETTINGS_KEY, {})
    try:
        group = site_settings.get("email", {})
        return {key: entry.get("value") for key, entry in group.items()}
    except (AttributeError, TypeError) as exc:
        logger.warning("Ignoring malformed email site settings: {}", exc)
        return {}


def _make_database(c: Container) -> Database:
    db = _config(c).database
    return Database(c.make(LoggerInterface), db.path, db.timeout)


def _make_cache(c: Container) -> CacheService:
    return CacheService(_config(c).cache.default_ttl)


def _make_token_manager(c: Container) -> TokenManager:
    return TokenManager(c.make(DatabaseInterface), c.make(LoggerInterface))


def _make_mailer(c: Container) -> MailerService:
    mail = _config(c).mail
    settings: dict[str, Any] = {
        "from_address": mail.from_address,
        "from_name": mail.from_name,
        "smtp_host": mail.smtp_host,
        "smtp_port": mail.smtp_port,
        "smtp_username": mail.smtp_username,
        "smtp_password": mail.smtp_password.get_secret_value(),
        "smtp_tls": mail.smtp_tls,
    }
    settings.update({k: v for k, v in _email_settings(c).items() if v not in (None, "")})
    return MailerService(settings)


def _make_auth(c: Container) -> AuthenticationService:
    return AuthenticationService(
        c.make(DatabaseInterface),
        c.make(FlashMessageInterface),
        c.make(PasswordManagerInterface),
        c.make(LoggerInterface),
    )


def _make_user_registration(c: Container) -> UserRegistrationService:
    return UserRegistrationService(
        c.make(DatabaseInterface),
        c.make(FlashMessageInterface),
        c.make(MailerInterface),
        c.make(TokenManagerInterface),
        c.make(PasswordManagerInterface),
        c.make(LoggerInterface),
        site_settings=optional(c, SiteSettingsService),
    )


def _make_site_settings(c: Container) -> SiteSettingsService:
    return SiteSettingsService(c.make(DatabaseInterface))


def _make_news(c: Container) -> NewsService:
    return NewsService(c.make(DatabaseInterface))


def _make_configuration_manager(c: Container) -> ConfigurationManager:
    return ConfigurationManager(
        c.make(DatabaseInterface),
        c.make(CacheInterface),
        c.make(LoggerInterface),
        _config(c),
    )


def _make_session_manager(c: Container) -> SessionManager:
    return SessionManager(
        c.make(LoggerInterface),
        {},
        c.make(ConfigurationManager),
        c.make(TokenManagerInterface),
    )


class ServiceProvider:
    """Named, typed accessors over one container."""

    _instance: ClassVar[ServiceProvider | None] = None
    _instance_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self, container: Container) -> None:
        self._container = container

    @classmethod
    def get_instance(cls, container: Container | None = None) -> ServiceProvider:
        """Return the process-wide provider, creating it on the first call.

        The first call must supply the container. Later calls return the same
        provider and ignore any container passed in.
        """
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    if container is None:
                        raise RuntimeError("Container must be provided on first call")
                    cls._instance = cls(container)
        return cls._instance

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._instance is not None

    @property
    def container(self) -> Container:
        return self._container

    def _service(self, abstract: Abstract) -> Any:
        return self._container.make(abstract)

    def get_auth(self) -> AuthenticationInterface:
        return self._service(AuthenticationInterface)

    def get_cache(self) -> CacheInterface:
        return self._service(CacheInterface)

    def get_database(self) -> DatabaseInterface:
        return self._service(DatabaseInterface)

    def get_flash_message(self) -> FlashMessageInterface:
        return self._service(FlashMessageInterface)

    def get_logger(self) -> LoggerInterface:
        return self._service(LoggerInterface)

    def get_mailer(self) -> MailerInterface:
        return self._service(MailerInterface)

    def get_token_manager(self) -> TokenManagerInterface:
        return self._service(TokenManagerInterface)

    def get_password_manager(self) -> PasswordManagerInterface:
        return self._service(PasswordManagerInterface)

    def get_user_registration(self) -> UserRegistrationInterface:
        return self._service(UserRegistrationInterface)

    def get_session_manager(self) -> SessionManagerInterface:
        return self._service(SessionManagerInterface)

    def get_site_settings_service(self) -> SiteSettingsService:
        return self._service(SiteSettingsService)

    def get_news_service(self) -> NewsService:
        return self._service(NewsService)

    def get_configuration_manager(self) -> ConfigurationManager:
        return self._service(ConfigurationManager)

    def register_core_services(self) -> None:
        """Bind every core service as a singleton, leaves first.

        Safe to call repeatedly: returns immediately once the logger is bound.
        """
        c = self._container
        if c.has(LoggerInterface):
            logger.debug("Core services already registered")
            return

        c.singleton(LoggerInterface, LoguruLogger)

        c.singleton(DatabaseInterface, _make_database)
        c.singleton(CacheInterface, _make_cache)

        c.singleton(FlashMessageInterface, FlashMessageService)
        c.singleton(TokenManagerInterface, _make_token_manager)
        c.singleton(PasswordManagerInterface, PasswordManager)

        c.singleton(MailerInterface, _make_mailer)

        c.singleton(AuthenticationInterface, _make_auth)
        c.singleton(UserRegistrationInterface, _make_user_registration)
        c.singleton(SiteSettingsService, _make_site_settings)
        c.singleton(NewsService, _make_news)
        c.singleton(ConfigurationManager, _make_configuration_manager)

        c.singleton(SessionManagerInterface, _make_session_manager)
        logger.debug("Registered {} core services", len(CORE_SERVICES))

    def warm_up(self) -> None:
        """Construct every core singleton now, raising on the first failure."""
        for _name, abstract in CORE_SERVICES:
            self._container.make(abstract)

    def check(self) -> dict[str, Exception | None]:
        """Try to construct every core service and report the outcome per name."""
        report: dict[str, Exception | None] = {}
        for name, abstract in CORE_SERVICES:
            try:
                self._container.make(abstract)
            except Exception as exc:
                logger.error("Service {} failed to build: {}", name, exc)
                report[name] = exc
            else:
                report[name] = None
        return report
