"""Runtime settings for trackpage, read from environment variables or a .env file."""

from pathlib import Path
from typing import Annotated, Any, Optional

from pydantic import Field, PositiveInt, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .errors import ConfigurationError

# Can be overridden via TRACKPAGE_DATA_DIR environment variable
_default_data_dir = Path(__file__).parent.parent.parent / "data"

ENV_PREFIX = "TRACKPAGE_"
DEFAULT_API_VERSION = "2024-01"
DEFAULT_METAFIELD = "custom.replacement_tracking"


class Settings(BaseSettings):
    """All tunables of a trackpage process."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
        populate_by_name=True,
    )

    data_dir: Path = _default_data_dir
    durable_storage: bool = True

    shopify_shop_domain: Optional[str] = Field(default=None, validation_alias="SHOPIFY_SHOP_DOMAIN")
    shopify_access_token: Optional[str] = Field(default=None, validation_alias="SHOPIFY_ACCESS_TOKEN")
    shopify_api_version: str = Field(default=DEFAULT_API_VERSION, validation_alias="SHOPIFY_API_VERSION")
    shopify_timeout: PositiveInt = Field(default=30, validation_alias="SHOPIFY_TIMEOUT")
    replacement_metafield: str = DEFAULT_METAFIELD

    admin_username: str = Field(default="admin", validation_alias="ADMIN_USERNAME")
    admin_password: str = Field(default="password", validation_alias="ADMIN_PASSWORD")

    unsaved_ttl: PositiveInt = 60 * 60  # 1 hour
    cache_sweep_interval: PositiveInt = 5 * 60
    refresh_after: PositiveInt = 4 * 60 * 60  # 4 hours
    retention_days: PositiveInt = 30
    prune_interval: PositiveInt = 24 * 60 * 60
    fulfillment_window: Annotated[tuple[float, float], NoDecode] = Field(
        default=(0, 30), validation_alias="TRACKPAGE_FULFILLMENT_WINDOW_DAYS"
    )

    facilities_file: Optional[Path] = None
    public_base_url: Optional[str] = None
    log_level: str = "INFO"

    @field_validator("fulfillment_window", mode="before")
    @classmethod
    def _parse_window(cls, value: Any) -> tuple[float, float]:
        """Accept "min,max" in days; min must be below max."""
        if isinstance(value, str):
            try:
                low, high = (float(part) for part in value.split(","))
            except ValueError:
                raise ConfigurationError(
                    "TRACKPAGE_FULFILLMENT_WINDOW_DAYS", f"expected 'min,max' in days, got {value!r}"
                )
        else:
            low, high = value
        if low >= high:
            raise ConfigurationError("TRACKPAGE_FULFILLMENT_WINDOW_DAYS", "min must be less than max")
        return (low, high)

    @field_validator("replacement_metafield")
    @classmethod
    def _check_metafield(cls, value: str) -> str:
        namespace, sep, key = value.partition(".")
        if not sep or not namespace or not key:
            raise ConfigurationError(
                "TRACKPAGE_REPLACEMENT_METAFIELD", f"expected 'namespace.key', got {value!r}"
            )
        return value

    @field_validator("public_base_url")
    @classmethod
    def _strip_slash(cls, value: Optional[str]) -> Optional[str]:
        return value.rstrip("/") if value else None

    @field_validator("log_level")
    @classmethod
    def _upper(cls, value: str) -> str:
        return value.upper()

    @property
    def metafield_namespace(self) -> str:
        return self.replacement_metafield.partition(".")[0]

    @property
    def metafield_key(self) -> str:
        return self.replacement_metafield.partition(".")[2]

    @property
    def shopify_configured(self) -> bool:
        return bool(self.shopify_shop_domain and self.shopify_access_token)

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from the environment.

        Raises:
            ConfigurationError: If a variable holds a malformed value.
        """
        try:
            return cls()
        except ValidationError as e:
            error = e.errors()[0]
            raise ConfigurationError(_env_name(str(error["loc"][0])), error["msg"])


def _env_name(loc: str) -> str:
    """Environment variable name for a field name or alias in an error location."""
    for name, field in Settings.model_fields.items():
        alias = field.validation_alias
        if loc == name or (isinstance(alias, str) and loc.lower() == alias.lower()):
            return alias if isinstance(alias, str) else f"{ENV_PREFIX}{name}".upper()
    return loc
