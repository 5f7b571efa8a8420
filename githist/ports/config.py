"""Configuration provider port.

Defines the interface for loading and accessing application configuration.
"""

from pathlib import Path
from typing import Protocol

from githist.domain.config import GitHistConfig


class ConfigProvider(Protocol):
    """Protocol for loading and providing configuration."""

    def load(self, repo_root: Path | None) -> GitHistConfig:
        """Load configuration for a repository.

        Args:
            repo_root: Repository root that may contain a .git-hist.toml,
                or None to read only the global config.

        Returns:
            GitHistConfig instance with loaded or default values

        Raises:
            ConfigError: If a config file is malformed or holds invalid values.
        """
        ...
