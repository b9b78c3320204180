"""
Application configuration using Pydantic Settings
"""

from urllib.parse import urlparse

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

from core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Environment
    LOG_LEVEL: str = "INFO"

    # HTTP
    HTTP_TIMEOUT: float = 30.0

    # Enterprise Search (sink)
    ENTERPRISE_SEARCH_BASE_URL: Optional[str] = None
    ENTERPRISE_SEARCH_PRIVATE_API_KEY: Optional[str] = None
    ENTERPRISE_SEARCH_ENGINE: Optional[str] = None
    ENTERPRISE_SEARCH_VERIFY_TLS: bool = True
    # The bulk documents endpoint accepts at most 100 documents per request
    BATCH_SIZE: int = Field(100, ge=1, le=100)

    # Objecten / Objecttypen
    OBJECTEN_BASE_URL: Optional[str] = None
    OBJECTEN_TOKEN: Optional[str] = None
    OBJECTTYPES_BASE_URL: Optional[str] = None
    OBJECTTYPES_TOKEN: Optional[str] = None
    VAC_OBJECTTYPE_URL: Optional[str] = None

    # Product catalogue (kennisartikelen)
    SDG_BASE_URL: Optional[str] = None
    SDG_API_KEY: Optional[str] = None

    # SharePoint
    SHAREPOINT_TENANT_ID: Optional[str] = None
    SHAREPOINT_CLIENT_ID: Optional[str] = None
    SHAREPOINT_CLIENT_SECRET: Optional[str] = None
    SHAREPOINT_SITE_URL: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    def require(self, name: str) -> str:
        """Return a configured value or fail with the variable name."""
        value = getattr(self, name, None)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ConfigurationError(
                f"missing environment variable: {name}",
                context={"variable": name}
            )
        return value

    def require_url(self, name: str, label: str) -> str:
        """Return a configured absolute http(s) base url."""
        value = self.require(name)
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigurationError(
                f"{label} base url is niet valide: {value}",
                context={"variable": name}
            )
        return value


settings = Settings()
