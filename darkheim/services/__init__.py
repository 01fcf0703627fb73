"""Default implementations of the core service contracts."""

from darkheim.services.auth import AuthenticationService
from darkheim.services.cache import CacheService
from darkheim.services.configuration import ConfigurationManager
from darkheim.services.database import Database
from darkheim.services.flash import FlashMessageService
from darkheim.services.logger import LoguruLogger
from darkheim.services.mailer import MailerService
from darkheim.services.news import NewsService
from darkheim.services.passwords import PasswordManager
from darkheim.services.registration import UserRegistrationService
from darkheim.services.session import SessionManager
from darkheim.services.site_settings import SiteSettingsService
from darkheim.services.tokens import TokenManager

__all__ = [
    "AuthenticationService",
    "CacheService",
    "ConfigurationManager",
    "Database",
    "FlashMessageService",
    "LoguruLogger",
    "MailerService",
    "NewsService",
    "PasswordManager",
    "SessionManager",
    "SiteSettingsService",
    "TokenManager",
    "UserRegistrationService",
]
