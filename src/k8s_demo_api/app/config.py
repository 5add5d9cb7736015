from dataclasses import dataclass

from pymongo.errors import ConfigurationError
from pymongo.uri_parser import parse_uri

from k8s_demo_shared.platform_manager import get_parameters

# Constants that don't change
API_VERSION = "1.0.0"
MESSAGES_COLLECTION = "messages"
MESSAGES_LIMIT = 10
DEFAULT_AUTHOR = "Anonymous"

DEFAULT_PORT = "3000"
DEFAULT_MONGO_URL = "mongodb://localhost:27017"
DEFAULT_DB_NAME = "demoapp"


@dataclass
class ApiSettings:
    """API configuration settings loaded from the environment."""

    port: int
    mongo_url: str
    db_name: str
    log_level: str = "INFO"

    # Reconnect policy: bounded retries with capped exponential backoff
    mongo_connect_max_retries: int = 10
    mongo_connect_base_delay: float = 1.0
    mongo_connect_max_delay: float = 30.0


class Config:
    """Singleton configuration manager for the demo API."""

    _instance = None
    _settings = None

    def __new__(cls) -> "Config":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def get_settings(self) -> ApiSettings:
        """Get API settings, loading from the environment if not already cached."""
        if self._settings is None:
            self._settings = self._load_settings()
        return self._settings

    def reset(self) -> None:
        self._settings = None

    def _load_settings(self) -> ApiSettings:
        parameters = get_parameters([
            "port",
            "mongo_url",
            "db_name",
            "log_level",
            "mongo_connect_max_retries",
            "mongo_connect_base_delay",
            "mongo_connect_max_delay",
        ])

        try:
            settings = ApiSettings(
                port=int(parameters["port"] or DEFAULT_PORT),
                mongo_url=parameters["mongo_url"] or DEFAULT_MONGO_URL,
                db_name=parameters["db_name"] or DEFAULT_DB_NAME,
                log_level=(parameters["log_level"] or "INFO").upper(),
                mongo_connect_max_retries=int(parameters["mongo_connect_max_retries"] or 10),
                mongo_connect_base_delay=float(parameters["mongo_connect_base_delay"] or 1.0),
                mongo_connect_max_delay=float(parameters["mongo_connect_max_delay"] or 30.0),
            )
        except ValueError as e:
            raise ValueError(f"Configuration value is invalid: {e}") from e

        self._validate_settings(settings)
        return settings

    def _validate_settings(self, settings: ApiSettings) -> None:
        """Validate that all required settings have valid values."""
        if not 0 < settings.port < 65536:
            raise ValueError("Configuration value is invalid: PORT")
        if settings.mongo_connect_max_retries < 0:
            raise ValueError("Configuration value is invalid: MONGO_CONNECT_MAX_RETRIES")
        if settings.mongo_connect_base_delay < 0:
            raise ValueError("Configuration value is invalid: MONGO_CONNECT_BASE_DELAY")
        if settings.mongo_connect_max_delay < settings.mongo_connect_base_delay:
            raise ValueError("Configuration value is invalid: MONGO_CONNECT_MAX_DELAY")
        for field in ["mongo_url", "db_name"]:
            if not getattr(settings, field):
                raise ValueError(f"Configuration value is invalid: {field.upper()}")
        # SRV URLs need a DNS lookup to parse, they are checked when connecting
        if not settings.mongo_url.startswith("mongodb+srv://"):
            try:
                parse_uri(settings.mongo_url)
            except (ConfigurationError, ValueError) as e:
                raise ValueError("Configuration value is invalid: MONGO_URL") from e


# Create singleton instance
config = Config()


# Convenience functions
def get_settings() -> ApiSettings:
    """Get API settings from the singleton config."""
    return config.get_settings()
