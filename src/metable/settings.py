from collections.abc import Mapping
import json
import logging
import os
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, Field, field_validator, model_validator

logger = logging.getLogger(__name__)


def normalize_value(v: str) -> str:
    if isinstance(v, str):
        return v.strip().lower()
    return v


Normalize = BeforeValidator(normalize_value)


METABLE_CONFIG_ENV = "METABLE_CONFIG_PATH"
METABLE_CONFIG_DEFAULT = Path("config") / "meta.json"
METABLE_LOCALES_ENV = "METABLE_SUPPORTED_LOCALES"
METABLE_DEFAULT_LOCALE_ENV = "METABLE_DEFAULT_LOCALE"


def _default_supported_locales() -> tuple[str, ...]:
    return ("ar", "en")


def normalize_locales(raw: Any) -> tuple[str, ...]:
    """
    Accept either a list of locale codes or a mapping keyed by locale code.

    Mappings are common when each locale carries a display name,
    e.g. ``{"en": "English", "ar": "Arabic"}``.
    """
    if raw is None:
        return ()
    if isinstance(raw, str):
        raw = [part for part in raw.split(",")]
    elif isinstance(raw, Mapping):
        raw = list(raw.keys())
    locales: list[str] = []
    for code in raw:
        code = str(code).strip()
        if code and code not in locales:
            locales.append(code)
    return tuple(locales)


class MetaConfig(BaseModel):
    """Process-wide metadata settings.

    Attributes:
        supported_locales: Locale codes that may key a translation bundle. Used both
            for type detection and for cache invalidation fan-out.
        default_locale: Locale used when a call does not pass one.
        cache_prefix: First segment of every cache key.
    """

    supported_locales: tuple[str, ...] = Field(default_factory=_default_supported_locales)
    default_locale: str = Field(default="en")
    cache_prefix: str = Field(default="meta")

    model_config = {"frozen": True}

    @field_validator("supported_locales", mode="before")
    @classmethod
    def _coerce_locales(cls, v: Any) -> tuple[str, ...]:
        return normalize_locales(v)

    @property
    def invalidation_locales(self) -> tuple[str, ...]:
        if self.default_locale in self.supported_locales:
            return self.supported_locales
        return (*self.supported_locales, self.default_locale)

    def is_supported_locale(self, code: Any) -> bool:
        return isinstance(code, str) and code in self.supported_locales


class MetadataStoreConfig(BaseModel):
    provider: Annotated[Literal["sqlite", "postgres"], Normalize] = "sqlite"
    ddl_mode: Annotated[Literal["create", "validate"], Normalize] = "create"
    dsn: str | None = Field(default=None, description="Database connection string.")
    table_prefix: str = Field(default="", description="Prefix for the metas table name.")

    @model_validator(mode="after")
    def set_provider_defaults(self) -> "MetadataStoreConfig":
        if self.dsn is None:
            if self.provider == "postgres":
                msg = "dsn is required for the postgres metadata store"
                raise ValueError(msg)
            self.dsn = "sqlite://"
        return self


class DatabaseConfig(BaseModel):
    metadata_store: MetadataStoreConfig = Field(default_factory=MetadataStoreConfig)


def resolve_meta_config_path() -> Path:
    override = os.getenv(METABLE_CONFIG_ENV)
    if override:
        return Path(override).expanduser()
    return Path(METABLE_CONFIG_DEFAULT).expanduser()


def _load_json_file(path: Path) -> Any:
    if not path.exists():
        return None
    try:
        raw = path.read_text(encoding="utf-8")
        return json.loads(raw)
    except Exception as exc:
        logger.warning("Failed to load JSON config from %s: %s", path, exc)
        return None


def load_meta_config_from_file() -> MetaConfig:
    """
    Load MetaConfig from JSON, then apply environment overrides.

    Supported:
    - config/meta.json (default)
    - METABLE_CONFIG_PATH override
    - METABLE_SUPPORTED_LOCALES="ar,en" and METABLE_DEFAULT_LOCALE="en"
    """
    data = _load_json_file(resolve_meta_config_path())
    values: dict[str, Any] = {}
    if isinstance(data, dict):
        values = dict(data)
    elif data is not None:
        logger.warning("meta config must be a JSON object")

    env_locales = os.getenv(METABLE_LOCALES_ENV)
    if env_locales:
        values["supported_locales"] = env_locales
    env_default = os.getenv(METABLE_DEFAULT_LOCALE_ENV)
    if env_default:
        values["default_locale"] = env_default.strip()

    try:
        return MetaConfig.model_validate(values)
    except Exception as exc:
        logger.warning("Invalid meta config, using defaults: %s", exc)
        return MetaConfig()
