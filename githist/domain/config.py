"""Config domain models for git-hist.

Configuration is read from TOML files and command-line options and represents
user preferences for how history is walked, navigated and displayed. This
module defines the domain models that represent validated configuration state.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields, replace
from typing import Any

from githist.domain.entities import UserRole
from githist.domain.exceptions import ConfigError

# strftime directives accepted in date formats (a "-" flag is allowed before them)
_DATE_DIRECTIVES = frozenset("aAbBcCdDeFgGhHIjklmMnpPrRsStTuUVwWxXyYzZ%")
_DIRECTIVE_PATTERN = re.compile(r"%(-?)(.?)")


def validate_date_format(date_format: str) -> None:
    """Check that a strftime format string only uses known directives.

    Args:
        date_format: Format string such as "[%Y-%m-%d]".

    Raises:
        ConfigError: If the format contains a dangling or unknown directive.
    """
    for match in _DIRECTIVE_PATTERN.finditer(date_format):
        directive = match.group(2)
        if not directive:
            raise ConfigError(
                "display.date_format",
                f"dangling '%' at end of {date_format!r}",
                hint="Escape a literal percent sign as '%%'",
            )
        if directive not in _DATE_DIRECTIVES or (match.group(1) and directive == "%"):
            raise ConfigError(
                "display.date_format",
                f"unknown directive '%{match.group(1)}{directive}' in {date_format!r}",
                hint="Use strftime directives such as %Y, %m, %d, %H, %M",
            )


def _parse_role(option: str, value: Any) -> UserRole:
    try:
        return UserRole(value)
    except ValueError as e:
        raise ConfigError(
            option, f"expected 'author' or 'committer', got {value!r}"
        ) from e


def _require_bool(option: str, value: Any) -> None:
    if not isinstance(value, bool):
        raise ConfigError(option, f"expected true or false, got {value!r}")


@dataclass(frozen=True)
class DisplayConfig:
    """Configuration for how revisions and diffs are displayed.

    Attributes:
        date_format: strftime format for commit dates (default: "[%Y-%m-%d]")
        name_of: Show the author's or the committer's name
        date_of: Show the author's or the committer's date
        full_hash: Show full commit hashes instead of abbreviated ones
        emphasize_diff: Highlight the changed parts of modified lines
        tab_size: Columns per tab stop when expanding tabs

    Raises:
        ConfigError: If any option has an invalid value.
    """

    date_format: str = "[%Y-%m-%d]"
    name_of: UserRole = UserRole.AUTHOR
    date_of: UserRole = UserRole.AUTHOR
    full_hash: bool = False
    emphasize_diff: bool = False
    tab_size: int = 4

    def __post_init__(self) -> None:
        """Validate display config after initialization."""
        if not isinstance(self.date_format, str):
            raise ConfigError("display.date_format", "expected a string")
        validate_date_format(self.date_format)
        # Accept plain strings from TOML/CLI and normalize them to roles
        object.__setattr__(self, "name_of", _parse_role("display.name_of", self.name_of))
        object.__setattr__(self, "date_of", _parse_role("display.date_of", self.date_of))
        _require_bool("display.full_hash", self.full_hash)
        _require_bool("display.emphasize_diff", self.emphasize_diff)
        if isinstance(self.tab_size, bool) or not isinstance(self.tab_size, int):
            raise ConfigError("display.tab_size", f"expected an integer, got {self.tab_size!r}")
        if not 1 <= self.tab_size <= 16:
            raise ConfigError(
                "display.tab_size", f"must be between 1 and 16, got {self.tab_size}"
            )


@dataclass(frozen=True)
class NavigationConfig:
    """Configuration for scrolling and revision navigation.

    Attributes:
        beyond_last_line: Allow scrolling until only the last line is visible
        prefetch: Compute the neighbouring revision's diff in the background
    """

    beyond_last_line: bool = False
    prefetch: bool = True

    def __post_init__(self) -> None:
        """Validate navigation config after initialization."""
        _require_bool("navigation.beyond_last_line", self.beyond_last_line)
        _require_bool("navigation.prefetch", self.prefetch)


@dataclass(frozen=True)
class HistoryConfig:
    """Configuration for the history walk.

    Attributes:
        first_parent: Follow only the first parent of merge commits
        follow_renames: Continue the history across renames detected by git
    """

    first_parent: bool = True
    follow_renames: bool = True

    def __post_init__(self) -> None:
        """Validate history config after initialization."""
        _require_bool("history.first_parent", self.first_parent)
        _require_bool("history.follow_renames", self.follow_renames)


_SECTIONS: dict[str, type] = {
    "display": DisplayConfig,
    "navigation": NavigationConfig,
    "history": HistoryConfig,
}


@dataclass(frozen=True)
class GitHistConfig:
    """Complete git-hist configuration.

    Attributes:
        display: Display and formatting configuration
        navigation: Scrolling and navigation configuration
        history: History walk configuration
    """

    display: DisplayConfig = field(default_factory=DisplayConfig)
    navigation: NavigationConfig = field(default_factory=NavigationConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)

    @staticmethod
    def default() -> GitHistConfig:
        """Create a config with all default values."""
        return GitHistConfig(
            display=DisplayConfig(),
            navigation=NavigationConfig(),
            history=HistoryConfig(),
        )

    @staticmethod
    def from_partial(base: GitHistConfig, data: dict[str, Any]) -> GitHistConfig:
        """Overlay partial config data onto a base config.

        Only keys present in ``data`` override the base; each section is
        re-validated after the overlay.

        Args:
            base: Config providing the values not present in data.
            data: Mapping of section name to a mapping of option values.

        Returns:
            New GitHistConfig with the overrides applied.

        Raises:
            ConfigError: If a section or option is unknown or a value is invalid.
        """
        sections: dict[str, Any] = {}
        for section_name, section_data in data.items():
            section_type = _SECTIONS.get(section_name)
            if section_type is None:
                raise ConfigError(section_name, "unknown config section")
            if not isinstance(section_data, dict):
                raise ConfigError(section_name, "expected a table of options")
            known = {f.name for f in fields(section_type)}
            for key in section_data:
                if key not in known:
                    raise ConfigError(f"{section_name}.{key}", "unknown option")
            sections[section_name] = replace(getattr(base, section_name), **section_data)
        return replace(base, **sections)
