"""Unit tests for configuration domain models."""

import pytest

from githist.domain.config import (
    DisplayConfig,
    GitHistConfig,
    HistoryConfig,
    NavigationConfig,
    validate_date_format,
)
from githist.domain.entities import UserRole
from githist.domain.exceptions import ConfigError


class TestDisplayConfig:
    """Tests for DisplayConfig."""

    def test_defaults(self) -> None:
        config = DisplayConfig()
        assert config.date_format == "[%Y-%m-%d]"
        assert config.name_of == UserRole.AUTHOR
        assert config.date_of == UserRole.AUTHOR
        assert config.full_hash is False
        assert config.emphasize_diff is False
        assert config.tab_size == 4

    def test_roles_accept_strings(self) -> None:
        config = DisplayConfig(name_of="committer", date_of="author")  # type: ignore[arg-type]
        assert config.name_of is UserRole.COMMITTER
        assert config.date_of is UserRole.AUTHOR

    def test_rejects_unknown_role(self) -> None:
        with pytest.raises(ConfigError, match="display.name_of"):
            DisplayConfig(name_of="reviewer")  # type: ignore[arg-type]

    @pytest.mark.parametrize("tab_size", [0, 17, -1])
    def test_rejects_out_of_range_tab_size(self, tab_size: int) -> None:
        with pytest.raises(ConfigError, match="display.tab_size"):
            DisplayConfig(tab_size=tab_size)

    def test_rejects_bool_tab_size(self) -> None:
        with pytest.raises(ConfigError, match="expected an integer"):
            DisplayConfig(tab_size=True)

    def test_rejects_non_bool_flag(self) -> None:
        with pytest.raises(ConfigError, match="display.full_hash"):
            DisplayConfig(full_hash="yes")  # type: ignore[arg-type]

    def test_config_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            DisplayConfig(tab_size=0)


class TestValidateDateFormat:
    """Tests for strftime format validation."""

    @pytest.mark.parametrize(
        "date_format",
        ["[%Y-%m-%d]", "%d %b %Y %H:%M", "%-d/%-m", "100%%", "no directives"],
    )
    def test_accepts_valid_formats(self, date_format: str) -> None:
        validate_date_format(date_format)

    def test_rejects_unknown_directive(self) -> None:
        with pytest.raises(ConfigError, match="unknown directive '%Q'"):
            validate_date_format("%Y-%Q")

    def test_rejects_dangling_percent(self) -> None:
        with pytest.raises(ConfigError, match="dangling") as exc_info:
            validate_date_format("%Y%")
        assert exc_info.value.hint is not None


class TestSectionConfigs:
    """Tests for NavigationConfig and HistoryConfig."""

    def test_navigation_defaults(self) -> None:
        config = NavigationConfig()
        assert config.beyond_last_line is False
        assert config.prefetch is True

    def test_history_defaults(self) -> None:
        config = HistoryConfig()
        assert config.first_parent is True
        assert config.follow_renames is True

    def test_history_rejects_non_bool(self) -> None:
        with pytest.raises(ConfigError, match="history.first_parent"):
            HistoryConfig(first_parent=1)  # type: ignore[arg-type]


class TestGitHistConfigFromPartial:
    """Tests for GitHistConfig.from_partial overlay."""

    def test_empty_data_keeps_base(self) -> None:
        base = GitHistConfig.default()
        assert GitHistConfig.from_partial(base, {}) == base

    def test_overrides_only_given_options(self) -> None:
        base = GitHistConfig.from_partial(
            GitHistConfig.default(), {"display": {"tab_size": 8, "full_hash": True}}
        )
        merged = GitHistConfig.from_partial(base, {"display": {"full_hash": False}})
        assert merged.display.tab_size == 8
        assert merged.display.full_hash is False
        assert merged.navigation == base.navigation

    def test_validates_overlaid_values(self) -> None:
        with pytest.raises(ConfigError, match="display.date_format"):
            GitHistConfig.from_partial(
                GitHistConfig.default(), {"display": {"date_format": "%Y %"}}
            )

    def test_rejects_unknown_section(self) -> None:
        with pytest.raises(ConfigError, match="unknown config section"):
            GitHistConfig.from_partial(GitHistConfig.default(), {"colors": {}})

    def test_rejects_unknown_option(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            GitHistConfig.from_partial(
                GitHistConfig.default(), {"navigation": {"wrap": True}}
            )
        assert exc_info.value.option == "navigation.wrap"

    def test_rejects_non_table_section(self) -> None:
        with pytest.raises(ConfigError, match="expected a table"):
            GitHistConfig.from_partial(GitHistConfig.default(), {"display": 3})
