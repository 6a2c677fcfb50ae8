"""
# Configuration Management Module

This module provides the **settings layer** for the LuxeBlog API. It is built on **Pydantic Settings**
and loads configuration from the environment, an optional config file, and safe defaults.

## Configuration Loading Hierarchy

```
┌─────────────────────────────────────────────────────────────┐
│         Configuration Loading Hierarchy                     │
│  (Higher layers override lower layers)                      │
├─────────────────────────────────────────────────────────────┤
│  1. Environment Variables (HIGHEST PRIORITY)                │
├─────────────────────────────────────────────────────────────┤
│  2. LUXEBLOG_CONFIG_PATH                                    │
│     - Custom config file path from env var                  │
├─────────────────────────────────────────────────────────────┤
│  3. .luxeblog File (Project Root)                           │
├─────────────────────────────────────────────────────────────┤
│  4. .env File (Project Root)                                │
├─────────────────────────────────────────────────────────────┤
│  5. Default Values (LOWEST PRIORITY)                        │
└─────────────────────────────────────────────────────────────┘
```

If no configuration file is found, the application runs in **environment-only mode**.

## Configuration Groups

### Server
```python
HOST: str = "127.0.0.1"
PORT: int = 10000
DEBUG: bool = True          # DEBUG=False means production mode
BASE_URL: str = "http://localhost:10000"
CLIENT_URL: str = "http://localhost:4321"
```

### MongoDB
```python
MONGODB_URL: str = "mongodb://localhost:27017"
MONGODB_DATABASE: str = "luxeblog"
MONGODB_CONNECTION_TIMEOUT: int = 10000
MONGODB_SERVER_SELECTION_TIMEOUT: int = 5000
MONGODB_USERNAME: Optional[str] = None
MONGODB_PASSWORD: Optional[SecretStr] = None
```

### Identity
Bearer tokens are minted by the external account service. This API only verifies them:
```python
SECRET_KEY: SecretStr        # HMAC key shared with the account service (REQUIRED)
ALGORITHM: str = "HS256"
```

### Content
```python
DEFAULT_PAGE_LIMIT: int = 100        # Post listing page size when none is given
MAX_PAGE_LIMIT: int = 1000           # Larger page sizes are clamped to this
MAX_PAGE: int = 100000               # Larger page numbers are clamped to this
SLUG_MAX_ATTEMPTS: int = 50          # Numeric suffixes tried before giving up
TAXONOMY_RESOLVE_ATTEMPTS: int = 3   # Create-or-fetch rounds for category/tag labels
SEED_DEFAULT_TAXONOMY: bool = True   # Seed default categories and tags on startup
```

## Usage

```python
from luxeblog.config import settings

if settings.is_production:
    ...
secret = settings.SECRET_KEY.get_secret_value()
```

Attributes:
    settings (Settings): Global configuration singleton.
"""

import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Constants ---
LUXEBLOG_FILENAME: str = ".luxeblog"
DEFAULT_ENV_FILENAME: str = ".env"
CONFIG_ENV_VAR: str = "LUXEBLOG_CONFIG_PATH"
PROJECT_ROOT: Path = Path(__file__).resolve().parents[2]


# --- Config file discovery (no logging) ---
def get_config_path() -> Optional[str]:
    """
    Determines the configuration file path based on a predefined precedence order.

    1.  **Environment Variable**: `LUXEBLOG_CONFIG_PATH` (if set and file exists).
    2.  **LuxeBlog Config**: `.luxeblog` file in the project root directory.
    3.  **Dotenv Config**: `.env` file in the project root directory.
    4.  **Fallback**: Returns `None`, triggering environment-variable-only mode.

    Returns:
        Optional[str]: The absolute path to the configuration file, or `None` if not found.
    """
    env_path: Optional[str] = os.environ.get(CONFIG_ENV_VAR)
    if env_path and os.path.exists(env_path):
        return env_path
    luxeblog_path: Path = PROJECT_ROOT / LUXEBLOG_FILENAME
    if luxeblog_path.exists():
        return str(luxeblog_path)
    env_path_file: Path = PROJECT_ROOT / DEFAULT_ENV_FILENAME
    if env_path_file.exists():
        return str(env_path_file)
    return None


CONFIG_PATH: Optional[str] = get_config_path()
if CONFIG_PATH:
    # Values already present in the environment win over the file
    load_dotenv(dotenv_path=CONFIG_PATH, override=False)


class Settings(BaseSettings):
    """
    Application configuration settings model.

    **Configuration Groups:**
    *   **Server**: Host, port, debug mode, public URLs.
    *   **Database**: MongoDB connection details.
    *   **Identity**: Bearer-token verification key and algorithm.
    *   **Content**: Pagination defaults, slug and taxonomy retry bounds, seeding.
    *   **Observability**: Log level and Prometheus toggle.
    """

    model_config = SettingsConfigDict(
        env_file=CONFIG_PATH if CONFIG_PATH else None,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Server configuration
    HOST: str = "127.0.0.1"
    PORT: int = 10000
    DEBUG: bool = True
    BASE_URL: str = "http://localhost:10000"
    CLIENT_URL: str = "http://localhost:4321"

    # Identity configuration
    SECRET_KEY: SecretStr = SecretStr("")  # Must be set in .luxeblog or environment
    ALGORITHM: str = "HS256"

    # MongoDB configuration
    MONGODB_URL: str = "mongodb://localhost:27017"
    MONGODB_DATABASE: str = "luxeblog"
    MONGODB_CONNECTION_TIMEOUT: int = 10000
    MONGODB_SERVER_SELECTION_TIMEOUT: int = 5000
    MONGODB_USERNAME: Optional[str] = None
    MONGODB_PASSWORD: Optional[SecretStr] = None

    # Content configuration
    DEFAULT_PAGE_LIMIT: int = 100
    MAX_PAGE_LIMIT: int = 1000
    MAX_PAGE: int = 100000
    SLUG_MAX_ATTEMPTS: int = 50
    TAXONOMY_RESOLVE_ATTEMPTS: int = 3
    SEED_DEFAULT_TAXONOMY: bool = True

    # Observability
    DEFAULT_LOG_LEVEL: str = "INFO"
    METRICS_ENABLED: bool = True

    @field_validator("SECRET_KEY", mode="before")
    @classmethod
    def no_hardcoded_secrets(cls, v: Any, info: Any) -> Any:
        """
        Validates that the token verification key is not a placeholder or empty.

        Raises:
            ValueError: If the value is empty, hardcoded, or insecure.
        """
        if not v or "change" in str(v).lower() or "0000" in str(v) or not str(v).strip():
            raise ValueError(f"{info.field_name} must be set via environment or .luxeblog and not hardcoded!")
        return v

    @field_validator("MONGODB_URL", mode="before")
    @classmethod
    def no_empty_urls(cls, v: Any, info: Any) -> Any:
        if not v or not str(v).strip():
            raise ValueError(f"{info.field_name} must be set via environment or .luxeblog and not empty!")
        return v

    @field_validator("DEFAULT_PAGE_LIMIT", "MAX_PAGE_LIMIT", "MAX_PAGE", "SLUG_MAX_ATTEMPTS", "TAXONOMY_RESOLVE_ATTEMPTS", mode="before")
    @classmethod
    def validate_positive_integers(cls, v: Any, info: Any) -> int:
        """
        Validates that numeric settings are positive integers.

        Raises:
            ValueError: If the value is not a positive integer.
        """
        value = int(v)
        if value <= 0:
            raise ValueError(f"{info.field_name} must be a positive integer")
        return value

    @property
    def is_production(self) -> bool:
        """
        Determine if the application is running in production mode.

        **Production mode** is defined as `DEBUG=False`. In production, error responses carry only
        the error type; internal details (messages, paths, timestamps) are suppressed.

        Returns:
            bool: `True` when `DEBUG` is disabled.
        """
        return not self.DEBUG


# Global settings instance
settings: Settings = Settings()
