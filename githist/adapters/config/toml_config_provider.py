"""TOML-based configuration provider.

Loads configuration from .git-hist.toml with global config fallback.

Config loading priority (highest to lowest):
1. Local: <repo>/.git-hist.toml (repo-specific)
2. Global: ~/.config/git-hist/config.toml (user defaults)
3. Built-in defaults

Command-line options are applied on top by the CLI.
"""

import logging
from pathlib import Path

from githist.domain.config import GitHistConfig
from githist.domain.exceptions import ConfigError
from githist.shared.config_io import (
    get_global_config_path,
    get_local_config_path,
    load_config_data,
)

logger = logging.getLogger(__name__)


class TomlConfigProvider:
    """Configuration provider that loads from TOML files.

    Implements config cascade:
    1. Load global config (~/.config/git-hist/config.toml) if present
    2. Load local config (<repo>/.git-hist.toml) if present
    3. Local values override global values (option-level merge)
    4. Missing values fall back to built-in defaults

    A malformed file or an invalid value stops loading with a ConfigError
    naming the file, so a typo never silently changes what is displayed.
    """

    def load(self, repo_root: Path | None) -> GitHistConfig:
        """Load configuration with global fallback.

        Uses domain-level merging via GitHistConfig.from_partial to ensure
        validation happens at each merge step.

        Args:
            repo_root: Repository root, or None to skip the local config

        Returns:
            GitHistConfig instance with merged global/local values or defaults

        Raises:
            ConfigError: If a config file is malformed or holds invalid values.
        """
        config = GitHistConfig.default()

        paths = [get_global_config_path()]
        if repo_root is not None:
            paths.append(get_local_config_path(repo_root))

        for path in paths:
            if not path.exists():
                continue
            data = load_config_data(path)
            try:
                config = GitHistConfig.from_partial(config, data)
            except ConfigError as e:
                raise ConfigError(
                    e.option, f"{e.detail} (in {path})", hint=e.hint
                ) from e
            logger.debug("Loaded config from %s", path)

        return config
