"""Tests for ServiceProvider: process-wide lifecycle, wiring and degradation."""

from __future__ import annotations

import pytest

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
from darkheim.di import Container
from darkheim.provider import CORE_SERVICES, SITE_SETTINGS_KEY, ServiceProvider
from darkheim.services import (
    ConfigurationManager,
    LoguruLogger,
    MailerService,
    NewsService,
    SessionManager,
    SiteSettingsService,
)

# ---------------------------------------------------------------------------
# Process-wide instance
# ---------------------------------------------------------------------------


class TestGetInstance:
    def test_first_call_requires_container(self):
        with pytest.raises(RuntimeError, match="Container must be provided"):
            ServiceProvider.get_instance()

    def test_returns_same_provider(self, container: Container):
        first = ServiceProvider.get_instance(container)
        assert ServiceProvider.get_instance() is first
        assert ServiceProvider.is_initialized() is True

    def test_later_container_is_ignored(self, container: Container):
        first = ServiceProvider.get_instance(container)
        again = ServiceProvider.get_instance(Container())
        assert again is first
        assert again.container is container

    def test_failed_first_call_leaves_provider_unconstructed(self, container: Container):
        with pytest.raises(RuntimeError):
            ServiceProvider.get_instance()
        assert ServiceProvider.is_initialized() is False
        assert ServiceProvider.get_instance(container).container is container


# ---------------------------------------------------------------------------
# Core service registration
# ---------------------------------------------------------------------------


class TestRegisterCoreServices:
    def test_registers_every_core_service_as_singleton(self, provider: ServiceProvider):
        bindings = provider.container.bindings()
        for _name, abstract in CORE_SERVICES:
            assert abstract in bindings
            assert bindings[abstract].singleton is True

    def test_registration_builds_nothing(self, provider: ServiceProvider):
        for _name, abstract in CORE_SERVICES:
            assert provider.container.resolved(abstract) is False

    def test_idempotent(self, provider: ServiceProvider):
        before = provider.container.bindings()
        logger_service = provider.get_logger()

        provider.register_core_services()

        assert provider.container.bindings() == before
        assert provider.get_logger() is logger_service

    def test_skips_when_logger_already_bound(self, container: Container):
        container.instance(LoggerInterface, LoguruLogger("custom"))
        ServiceProvider(container).register_core_services()
        assert not container.has(DatabaseInterface)


# ---------------------------------------------------------------------------
# Typed accessors
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("getter", "contract"),
    [
        ("get_logger", LoggerInterface),
        ("get_database", DatabaseInterface),
        ("get_cache", CacheInterface),
        ("get_flash_message", FlashMessageInterface),
        ("get_token_manager", TokenManagerInterface),
        ("get_password_manager", PasswordManagerInterface),
        ("get_mailer", MailerInterface),
        ("get_auth", AuthenticationInterface),
        ("get_user_registration", UserRegistrationInterface),
        ("get_site_settings_service", SiteSettingsService),
        ("get_news_service", NewsService),
        ("get_configuration_manager", ConfigurationManager),
        ("get_session_manager", SessionManagerInterface),
    ],
)
def test_getter_returns_cached_contract(provider: ServiceProvider, getter: str, contract: type):
    service = getattr(provider, getter)()
    assert isinstance(service, contract)
    assert getattr(provider, getter)() is service
    assert provider.container.make(contract) is service


def test_session_manager_shares_singletons(provider: ServiceProvider):
    session = provider.get_session_manager()
    assert isinstance(session, SessionManager)
    assert session._tokens is provider.get_token_manager()
    assert session.lifetime == 7200


def test_configuration_manager_uses_registered_config(container: Container):
    container.instance(DarkheimConfig, DarkheimConfig(app={"name": "Testheim"}))
    provider = ServiceProvider(container)
    provider.register_core_services()
    assert provider.get_configuration_manager().get("app.name") == "Testheim"


# ---------------------------------------------------------------------------
# Optional collaborators and fallbacks
# ---------------------------------------------------------------------------


class TestGracefulDegradation:
    def test_user_registration_without_site_settings(self, provider: ServiceProvider, log_messages: list[str]):
        provider.container.singleton(SiteSettingsService, "darkheim.services.missing.SiteSettings")

        registration = provider.get_user_registration()

        assert registration.site_settings is None
        assert any("SiteSettingsService unavailable" in m for m in log_messages)

    def test_user_registration_with_site_settings(self, provider: ServiceProvider):
        registration = provider.get_user_registration()
        assert registration.site_settings is provider.get_site_settings_service()

    def test_mailer_without_site_settings_uses_config(self, provider: ServiceProvider):
        mailer = provider.get_mailer()
        assert isinstance(mailer, MailerService)
        assert mailer.from_address == "noreply@localhost"

    def test_mailer_reads_email_site_settings(self, provider: ServiceProvider):
        provider.container.value(
            SITE_SETTINGS_KEY,
            {"email": {"from_address": {"value": "admin@darkheim.test"}, "from_name": {"value": ""}}},
        )
        mailer = provider.get_mailer()
        assert mailer.from_address == "admin@darkheim.test"
        assert mailer.from_name == "Darkheim"

    def test_mailer_ignores_malformed_site_settings(self, provider: ServiceProvider, log_messages: list[str]):
        provider.container.value(SITE_SETTINGS_KEY, "not-a-mapping")
        mailer = provider.get_mailer()
        assert mailer.from_address == "noreply@localhost"
        assert any("malformed email site settings" in m for m in log_messages)

    def test_missing_config_falls_back_to_defaults(self, container: Container, log_messages: list[str]):
        provider = ServiceProvider(container)
        provider.register_core_services()

        mailer = provider.get_mailer()

        assert mailer.from_address == "noreply@localhost"
        assert any("No DarkheimConfig registered" in m for m in log_messages)

    def test_mandatory_dependency_failure_propagates(self, provider: ServiceProvider):
        def broken(c: Container) -> DatabaseInterface:
            raise RuntimeError("database offline")

        provider.container.singleton(DatabaseInterface, broken)
        with pytest.raises(RuntimeError, match="database offline"):
            provider.get_auth()


# ---------------------------------------------------------------------------
# Eager construction
# ---------------------------------------------------------------------------


class TestWarmUp:
    def test_warm_up_builds_everything(self, provider: ServiceProvider):
        provider.warm_up()
        for _name, abstract in CORE_SERVICES:
            assert provider.container.resolved(abstract)

    def test_check_reports_success(self, provider: ServiceProvider):
        report = provider.check()
        assert list(report) == [name for name, _ in CORE_SERVICES]
        assert all(error is None for error in report.values())

    def test_check_reports_failures(self, provider: ServiceProvider):
        def broken(c: Container) -> NewsService:
            raise RuntimeError("news offline")

        provider.container.singleton(NewsService, broken)
        report = provider.check()

        assert isinstance(report["news"], RuntimeError)
        assert report["logger"] is None
        assert report["session_manager"] is None
