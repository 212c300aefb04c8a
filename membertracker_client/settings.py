# membertracker_client/settings.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
import logging
from pathlib import Path

# Configure logging for settings module
logger = logging.getLogger(__name__)
if not logging.getLogger().hasHandlers():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s %(name)s - [%(levelname)s] - %(message)s'
    )

# This settings.py file is at <project>/membertracker_client/settings.py
# Two .parent calls get to the project root
PROJECT_ROOT = Path(__file__).parent.parent.resolve()
DOTENV_PATH = PROJECT_ROOT / ".env"

if DOTENV_PATH.exists():
    logger.debug(f"SETTINGS: .env file found at: {DOTENV_PATH}")
else:
    logger.debug(
        f"SETTINGS: .env file not found at: {DOTENV_PATH}. "
        "Relying on OS env vars or defaults."
    )


class Settings(BaseSettings):
    """Client settings with environment variable support."""

    app_name: str = "Member Tracker Client"
    debug_mode: bool = False
    log_level: str = "INFO"

    # Backend API
    api_base_url: str = "http://localhost:8080/api"
    api_timeout_ms: int = Field(default=30000, gt=0)
    api_retry_attempts: int = Field(default=3, ge=0)
    api_retry_delay_ms: int = Field(default=1000, ge=0)

    # Backend endpoints consumed by the session layer
    auth_login_path: str = "/v1/auth/login"
    auth_logout_path: str = "/v1/auth/logout"
    auth_refresh_path: str = "/v1/auth/refresh"
    auth_register_path: str = "/v1/auth/register"
    current_user_path: str = "/users/me"

    # Anti-forgery cookie mirrored into a header on mutating calls
    csrf_cookie_name: str = "XSRF-TOKEN"
    csrf_header_name: str = "X-XSRF-TOKEN"

    # Idle session handling
    session_idle_timeout_ms: int = Field(
        default=60 * 60 * 1000,
        gt=0,
        description="Inactivity after which an authenticated session is treated as expired."
    )
    session_check_interval_ms: int = Field(
        default=30000,
        gt=0,
        description="Period of the idle-session monitor tick."
    )

    # In-app routes used for redirects
    login_route: str = "/login"
    default_route: str = "/"

    model_config = SettingsConfigDict(
        env_file=DOTENV_PATH if DOTENV_PATH.exists() else None,
        extra="ignore",
        env_file_encoding='utf-8'
    )

    @property
    def api_timeout_seconds(self) -> float:
        return self.api_timeout_ms / 1000

    @property
    def session_check_interval_seconds(self) -> float:
        return self.session_check_interval_ms / 1000


# Initialize settings instance
settings = Settings()

logger.debug(
    f"SETTINGS: api_base_url='{settings.api_base_url}', "
    f"api_timeout_ms={settings.api_timeout_ms}, "
    f"api_retry_attempts={settings.api_retry_attempts}, "
    f"session_idle_timeout_ms={settings.session_idle_timeout_ms}"
)
