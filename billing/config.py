"""
Application configuration through Pydantic Settings
"""
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings read from BILLING_* environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="BILLING_",
        case_sensitive=False,
        extra="ignore",
    )

    # application
    app_name: str = "billing-core"
    app_version: str = "1.0.0"
    debug: bool = False

    # logging
    log_level: str = Field(default="INFO", description="logging level")
    log_format: str = Field(default="json", description="log format: json or console")

    # billing api
    api_base_url: str = Field(
        default="http://localhost:5000/api", description="base url of the billing rest api"
    )
    api_timeout: float = Field(default=30.0, gt=0, description="http timeout in seconds")

    # auth
    csrf_cookie_name: str = "XSRF-TOKEN"
    csrf_header_name: str = "x-csrf-token"
    refresh_path: str = "/auth/refresh-token"
    auth_paths: str = Field(
        default="/auth/login,/auth/register,/auth/refresh-token",
        description="endpoints that never get a csrf header or a token refresh",
    )

    # billing defaults
    default_payment_method: str = "cash"
    currency: str = "INR"

    @property
    def auth_paths_list(self) -> List[str]:
        """Split auth endpoints into a list"""
        return [path.strip() for path in self.auth_paths.split(",") if path.strip()]


# Singleton instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get settings (singleton)"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
