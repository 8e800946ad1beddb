"""restgrid settings, built on pydantic-settings.

Sources, from weakest to strongest:

- the defaults declared below;
- the ``[tool.restgrid]`` table of ./pyproject.toml;
- ./restgrid.toml;
- the per-user config.toml (~/.config/restgrid, or %APPDATA%\\restgrid on Windows);
- the file named by RESTGRID_CONFIG_FILE;
- environment variables.

Each section reads its own environment prefix with ``__`` before the
field name, e.g. RESTGRID_PAGINATION__DEFAULT_PAGE_SIZE=50 or
RESTGRID_LAYOUT__DEFAULT=pager,items.
"""

from __future__ import annotations

import os
import sys
import tomllib

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .log import DEFAULT_FORMAT, configure_from_settings, warn


#: Section names a grid layout may contain, in their canonical order.
LAYOUT_SECTIONS: tuple[str, ...] = ("metadata", "pager", "columns", "items")


def _user_config_path() -> Path:
    if sys.platform == "win32":
        return Path(os.environ.get("APPDATA", "~"), "restgrid", "config.toml").expanduser()
    return Path("~/.config/restgrid/config.toml").expanduser()


def _config_candidates() -> list[Path]:
    """Config file locations, weakest first. Missing files are skipped later."""
    candidates = [Path("pyproject.toml"), Path("restgrid.toml"), _user_config_path()]
    explicit = os.environ.get("RESTGRID_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit))
    return candidates


def _read_toml(path: Path) -> dict[str, Any]:
    """Return the restgrid settings found in one TOML file."""
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        warn(f"Ignoring unreadable config file {path}: {exc}")
        return {}
    if path.name == "pyproject.toml":
        return data.get("tool", {}).get("restgrid", {})
    return data


def _overlay(base: dict[str, Any], top: dict[str, Any]) -> dict[str, Any]:
    """Lay ``top`` over ``base`` table by table; other values (lists too) replace."""
    merged = dict(base)
    for name, value in top.items():
        below = merged.get(name)
        if isinstance(below, dict) and isinstance(value, dict):
            value = _overlay(below, value)
        merged[name] = value
    return merged


def _load_toml_config() -> dict[str, Any]:
    """Merge every existing config file into one mapping."""
    merged: dict[str, Any] = {}
    for path in _config_candidates():
        if path.is_file():
            merged = _overlay(merged, _read_toml(path))
    return merged


def _split_csv(v: Any) -> Any:
    if isinstance(v, str):
        return [s.strip() for s in v.split(",") if s.strip()]
    return v


class LogSettings(BaseSettings):
    """Logging settings.

    Environment prefix: RESTGRID_LOG__
    Example: RESTGRID_LOG__LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_prefix="RESTGRID_LOG__",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    format: str = DEFAULT_FORMAT


class LayoutSettings(BaseSettings):
    """Default layout selection for grids.

    Environment prefix: RESTGRID_LAYOUT__
    Example: RESTGRID_LAYOUT__DEFAULT="pager,items"
    """

    model_config = SettingsConfigDict(
        env_prefix="RESTGRID_LAYOUT__",
        extra="ignore",
    )

    param: str = Field(default="layout", min_length=1, description="Request parameter name")
    separator: str = Field(default=",", min_length=1, description="Section name separator")
    default: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(LAYOUT_SECTIONS),
        description="Sections rendered when the request does not select any",
    )

    @field_validator("default", mode="before")
    @classmethod
    def _parse_default(cls, v: Any) -> list[str]:
        """Accept a comma-separated string (from env var) or a list."""
        v = _split_csv(v)
        unknown = set(v) - set(LAYOUT_SECTIONS)
        if unknown:
            msg = (
                f"Unknown layout section(s): {', '.join(sorted(unknown))}. "
                f"Available: {', '.join(LAYOUT_SECTIONS)}"
            )
            raise ValueError(msg)
        return v


class PaginationSettings(BaseSettings):
    """Pagination defaults.

    Environment prefix: RESTGRID_PAGINATION__
    Example: RESTGRID_PAGINATION__DEFAULT_PAGE_SIZE=50
    """

    model_config = SettingsConfigDict(
        env_prefix="RESTGRID_PAGINATION__",
        extra="ignore",
    )

    page_param: str = "page"
    page_size_param: str = "per-page"
    default_page_size: int = Field(default=20, ge=1)
    page_size_min: int = Field(default=1, ge=0)
    page_size_max: int = Field(default=50, ge=1)

    @model_validator(mode="after")
    def _check_limits(self) -> PaginationSettings:
        if self.page_size_min > self.page_size_max:
            msg = (
                f"page_size_min ({self.page_size_min}) exceeds "
                f"page_size_max ({self.page_size_max})"
            )
            raise ValueError(msg)
        return self


class SortSettings(BaseSettings):
    """Sort defaults.

    Environment prefix: RESTGRID_SORT__
    Example: RESTGRID_SORT__ENABLE_MULTI_SORT=true
    """

    model_config = SettingsConfigDict(
        env_prefix="RESTGRID_SORT__",
        extra="ignore",
    )

    sort_param: str = "sort"
    separator: str = Field(default=",", min_length=1)
    enable_multi_sort: bool = False


class FormatterSettings(BaseSettings):
    """Value formatter defaults.

    Environment prefix: RESTGRID_FORMATTER__
    Example: RESTGRID_FORMATTER__DATE_FORMAT="%d.%m.%Y"
    """

    model_config = SettingsConfigDict(
        env_prefix="RESTGRID_FORMATTER__",
        extra="ignore",
    )

    null_display: str | None = None
    boolean_format: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["No", "Yes"])
    date_format: str = "%Y-%m-%d"
    datetime_format: str = "%Y-%m-%d %H:%M:%S"
    time_format: str = "%H:%M:%S"
    decimal_separator: str = "."
    thousand_separator: str = ","
    currency_code: str = "USD"
    size_format_base: Literal[1000, 1024] = 1024

    @field_validator("boolean_format", mode="before")
    @classmethod
    def _parse_boolean_format(cls, v: Any) -> list[str]:
        """Accept "No,Yes" (from env var) or a two-item list."""
        v = _split_csv(v)
        if len(v) != 2:
            msg = f"boolean_format needs exactly two labels, got {len(v)}"
            raise ValueError(msg)
        return v


class GridSettings(BaseSettings):
    """All restgrid settings.

    Environment prefix: RESTGRID__ (sections also read their own prefix).
    Keyword arguments outrank every other source.
    """

    model_config = SettingsConfigDict(
        env_prefix="RESTGRID__",
        env_nested_delimiter="__",
        extra="ignore",
    )

    log: LogSettings = Field(default_factory=LogSettings)
    layout: LayoutSettings = Field(default_factory=LayoutSettings)
    pagination: PaginationSettings = Field(default_factory=PaginationSettings)
    sort: SortSettings = Field(default_factory=SortSettings)
    formatter: FormatterSettings = Field(default_factory=FormatterSettings)

    batch_size: int = Field(
        default=100,
        ge=1,
        description="Page size used when a grid builds its data provider from a query",
    )

    def __init__(self, **data: Any) -> None:
        layered = _load_toml_config()

        # Environment variables outrank config files
        env_names = {name.upper() for name in os.environ}
        prefix = str(self.model_config.get("env_prefix", "")).upper()
        for name, field in type(self).model_fields.items():
            if name not in layered:
                continue
            if f"{prefix}{name.upper()}" in env_names:
                del layered[name]
                continue
            section = field.annotation
            if (
                isinstance(layered[name], dict)
                and isinstance(section, type)
                and issubclass(section, BaseSettings)
            ):
                from_env = section().model_dump(exclude_unset=True)
                layered[name] = _overlay(layered[name], from_env)

        super().__init__(**_overlay(layered, data))


@lru_cache(maxsize=1)
def get_settings() -> GridSettings:
    """Return the process-wide settings, loading them on first use.

    Loading applies the log section to the restgrid logger. Use
    :func:`reload_settings` after changing files or environment variables.
    """
    settings = GridSettings()
    configure_from_settings(settings.log)
    return settings


def clear_settings() -> None:
    """Forget the loaded settings and the default formatter built from them.

    The next get_settings() or get_formatter() call reloads them.
    """
    from .formatter import get_formatter  # formatter imports this module

    get_settings.cache_clear()
    get_formatter.cache_clear()


def reload_settings() -> GridSettings:
    """Load the settings again from every source and return them."""
    clear_settings()
    return get_settings()
