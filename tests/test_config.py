"""Tests for configuration classes.

Tests GridSettings and its sections, environment variable overrides and
TOML file layering.
"""

import logging

import pytest

from pydantic import ValidationError

from restgrid.config import (
    LAYOUT_SECTIONS,
    FormatterSettings,
    GridSettings,
    LayoutSettings,
    PaginationSettings,
    SortSettings,
    clear_settings,
    get_settings,
    reload_settings,
)
from restgrid.formatter import get_formatter
from restgrid.log import get_logger


class TestDefaults:
    """Tests for built-in defaults."""

    def test_layout_defaults(self):
        """Layout reads ?layout=, split on commas, all sections by default."""
        settings = LayoutSettings()
        assert settings.param == "layout"
        assert settings.separator == ","
        assert settings.default == list(LAYOUT_SECTIONS)

    def test_pagination_defaults(self):
        """Pagination reads ?page= and ?per-page= with 20 rows by default."""
        settings = PaginationSettings()
        assert settings.page_param == "page"
        assert settings.page_size_param == "per-page"
        assert settings.default_page_size == 20
        assert (settings.page_size_min, settings.page_size_max) == (1, 50)

    def test_sort_defaults(self):
        """Sort reads ?sort= with single-attribute sorting."""
        settings = SortSettings()
        assert settings.sort_param == "sort"
        assert settings.enable_multi_sort is False

    def test_grid_batch_size(self):
        """Query-backed grids page by 100 rows."""
        assert GridSettings().batch_size == 100


class TestValidation:
    """Tests for settings validation."""

    def test_unknown_layout_section(self):
        """Default layouts may only name known sections."""
        with pytest.raises(ValidationError, match="Unknown layout section"):
            LayoutSettings(default=["pager", "chart"])

    def test_layout_from_csv(self):
        """A comma-separated layout string is split."""
        assert LayoutSettings(default="pager, items").default == ["pager", "items"]

    def test_page_size_limits_ordered(self):
        """page_size_min may not exceed page_size_max."""
        with pytest.raises(ValidationError, match="exceeds"):
            PaginationSettings(page_size_min=10, page_size_max=5)

    def test_boolean_format_needs_two_labels(self):
        """boolean_format takes exactly two labels."""
        with pytest.raises(ValidationError, match="exactly two"):
            FormatterSettings(boolean_format=["yes"])

    def test_batch_size_positive(self):
        """batch_size must be at least one."""
        with pytest.raises(ValidationError):
            GridSettings(batch_size=0)


class TestEnvironment:
    """Tests for environment variable overrides."""

    def test_section_prefix(self, monkeypatch):
        """Section settings read their own prefix."""
        monkeypatch.setenv("RESTGRID_PAGINATION__DEFAULT_PAGE_SIZE", "50")
        assert PaginationSettings().default_page_size == 50

    def test_layout_default_from_env(self, monkeypatch):
        """A comma-separated env var sets the default layout."""
        monkeypatch.setenv("RESTGRID_LAYOUT__DEFAULT", "pager,items")
        assert LayoutSettings().default == ["pager", "items"]

    def test_boolean_format_from_env(self, monkeypatch):
        """boolean_format accepts "No,Yes" from the environment."""
        monkeypatch.setenv("RESTGRID_FORMATTER__BOOLEAN_FORMAT", "Nein,Ja")
        assert FormatterSettings().boolean_format == ["Nein", "Ja"]

    def test_get_settings_cached(self, monkeypatch):
        """get_settings() is cached until cleared."""
        first = get_settings()
        monkeypatch.setenv("RESTGRID_SORT__ENABLE_MULTI_SORT", "true")
        assert get_settings() is first
        assert reload_settings().sort.enable_multi_sort is True

    def test_reload_refreshes_default_formatter(self, monkeypatch):
        """reload_settings() also rebuilds the default formatter."""
        before = get_formatter()
        monkeypatch.setenv("RESTGRID_FORMATTER__THOUSAND_SEPARATOR", "'")
        reload_settings()
        after = get_formatter()
        assert after is not before
        assert after.thousand_separator == "'"

    def test_log_level_applied(self, monkeypatch):
        """Loading settings applies the log level."""
        monkeypatch.setenv("RESTGRID_LOG__LEVEL", "DEBUG")
        clear_settings()
        get_settings()
        try:
            assert get_logger().level == logging.DEBUG
        finally:
            get_logger().setLevel(logging.WARNING)


class TestTomlFiles:
    """Tests for TOML configuration layering."""

    def test_restgrid_toml(self, tmp_path):
        """./restgrid.toml is read from the working directory."""
        (tmp_path / "restgrid.toml").write_text(
            '[layout]\ndefault = ["items"]\n\n[pagination]\ndefault_page_size = 10\n',
            encoding="utf-8",
        )
        settings = GridSettings()
        assert settings.layout.default == ["items"]
        assert settings.pagination.default_page_size == 10

    def test_pyproject_tool_section(self, tmp_path):
        """pyproject.toml is read from its [tool.restgrid] table."""
        (tmp_path / "pyproject.toml").write_text(
            '[project]\nname = "app"\n\n[tool.restgrid]\nbatch_size = 25\n',
            encoding="utf-8",
        )
        assert GridSettings().batch_size == 25

    def test_config_file_env_overrides_project(self, tmp_path, monkeypatch):
        """RESTGRID_CONFIG_FILE is layered over project files."""
        (tmp_path / "restgrid.toml").write_text("batch_size = 25\n", encoding="utf-8")
        override = tmp_path / "override.toml"
        override.write_text("batch_size = 75\n", encoding="utf-8")
        monkeypatch.setenv("RESTGRID_CONFIG_FILE", str(override))
        assert GridSettings().batch_size == 75

    def test_kwargs_override_files(self, tmp_path):
        """Explicit keyword arguments win over TOML files."""
        (tmp_path / "restgrid.toml").write_text("batch_size = 25\n", encoding="utf-8")
        assert GridSettings(batch_size=5).batch_size == 5

    def test_broken_file_ignored(self, tmp_path):
        """An unparsable config file is skipped."""
        (tmp_path / "restgrid.toml").write_text("batch_size = = 1\n", encoding="utf-8")
        assert GridSettings().batch_size == 100

    def test_section_env_overrides_files(self, tmp_path, monkeypatch):
        """Section environment variables win over values from files."""
        (tmp_path / "restgrid.toml").write_text(
            "[pagination]\ndefault_page_size = 10\npage_size_max = 40\n",
            encoding="utf-8",
        )
        monkeypatch.setenv("RESTGRID_PAGINATION__DEFAULT_PAGE_SIZE", "30")
        settings = GridSettings()
        assert settings.pagination.default_page_size == 30
        assert settings.pagination.page_size_max == 40

    def test_top_level_env_overrides_files(self, tmp_path, monkeypatch):
        """RESTGRID__BATCH_SIZE wins over batch_size from files."""
        (tmp_path / "restgrid.toml").write_text("batch_size = 25\n", encoding="utf-8")
        monkeypatch.setenv("RESTGRID__BATCH_SIZE", "60")
        assert GridSettings().batch_size == 60
