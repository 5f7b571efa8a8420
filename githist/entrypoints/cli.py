"""git-hist CLI entrypoint.

Command-line interface for browsing the git history of a file.
"""

from __future__ import annotations

import functools
import logging
import shutil
import sys
from pathlib import Path
from typing import Any

import click
from click.core import ParameterSource

from githist.adapters.config.toml_config_provider import TomlConfigProvider
from githist.adapters.git_cmd import GitAdapter
from githist.adapters.tui.history_ui import CHROME_ROWS, HistoryUI
from githist.core.errors import GitHistCliError, not_a_file_error
from githist.core.history.session import HistorySession
from githist.domain.config import GitHistConfig
from githist.domain.entities import UserRole
from githist.domain.exceptions import GitHistError
from githist.ports.config import ConfigProvider
from githist.version import __version__

logger = logging.getLogger(__name__)

# CLI option name -> (config section, config option)
_OPTION_TARGETS: dict[str, tuple[str, str]] = {
    "full_hash": ("display", "full_hash"),
    "emphasize_diff": ("display", "emphasize_diff"),
    "name_of": ("display", "name_of"),
    "date_of": ("display", "date_of"),
    "date_format": ("display", "date_format"),
    "tab_size": ("display", "tab_size"),
    "beyond_last_line": ("navigation", "beyond_last_line"),
}


def handle_cli_errors(command_name: str):
    """Decorator to handle common CLI errors.

    Converts domain exceptions into GitHistCliError and shows tracebacks of
    unexpected errors in verbose mode. GitHistCliError exceptions are
    re-raised to use their built-in formatting.

    Args:
        command_name: Name of the command for error messages.

    Returns:
        Decorated function with error handling.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except GitHistCliError:
                raise
            except GitHistError as e:
                # Convert domain exceptions to CLI exceptions
                raise GitHistCliError(e.message, hint=e.hint) from e
            except RuntimeError as e:
                raise GitHistCliError(
                    str(e),
                    hint="Run with --verbose for more details",
                ) from e
            except Exception as e:
                ctx = click.get_current_context()
                if (ctx.obj or {}).get("verbose", False):
                    import traceback

                    traceback.print_exc()
                raise GitHistCliError(
                    f"Unexpected error in {command_name}: {e}",
                    hint="Run with --verbose for more details",
                ) from e

        return wrapper

    return decorator


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _apply_cli_overrides(
    ctx: click.Context, config: GitHistConfig, options: dict[str, Any]
) -> GitHistConfig:
    """Overlay options given on the command line onto the loaded config.

    Options left at their defaults do not override config files.

    Raises:
        ConfigError: If an option value is invalid.
    """
    overrides: dict[str, dict[str, Any]] = {}
    for name, (section, option) in _OPTION_TARGETS.items():
        if ctx.get_parameter_source(name) == ParameterSource.COMMANDLINE:
            overrides.setdefault(section, {})[option] = options[name]
    if ctx.get_parameter_source("no_prefetch") == ParameterSource.COMMANDLINE:
        overrides.setdefault("navigation", {})["prefetch"] = not options["no_prefetch"]
    if not overrides:
        return config
    logger.debug("Command-line overrides: %s", overrides)
    return GitHistConfig.from_partial(config, overrides)


_ROLES = click.Choice([role.value for role in UserRole])


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="git-hist")
@click.argument("file", type=click.Path(path_type=Path))
@click.option("--full-hash", is_flag=True, help="Show full commit hashes.")
@click.option(
    "--beyond-last-line",
    is_flag=True,
    help="Allow scrolling until only the last line is visible.",
)
@click.option(
    "--emphasize-diff",
    is_flag=True,
    help="Highlight the changed parts of modified lines.",
)
@click.option(
    "--name-of",
    type=_ROLES,
    default=UserRole.AUTHOR.value,
    show_default=True,
    help="Whose name to show for each commit.",
)
@click.option(
    "--date-of",
    type=_ROLES,
    default=UserRole.AUTHOR.value,
    show_default=True,
    help="Whose date to show for each commit.",
)
@click.option(
    "--date-format",
    default="[%Y-%m-%d]",
    show_default=True,
    help="strftime format of commit dates.",
)
@click.option("--tab-size", type=int, default=4, show_default=True, help="Columns per tab stop.")
@click.option(
    "--no-prefetch",
    is_flag=True,
    help="Do not compute neighbouring revisions in the background.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
@handle_cli_errors("git-hist")
def cli(ctx: click.Context, file: Path, verbose: bool, **options: Any) -> None:
    """Browse the git history of FILE, one revision at a time.

    Use the left and right arrow keys to move to older and newer revisions,
    the up and down arrow keys to scroll, and q to quit.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    _configure_logging(verbose)

    vcs = GitAdapter.discover(Path.cwd())
    if file.is_dir():
        not_a_file_error(str(file))
    path = vcs.relative_path(file)

    provider: ConfigProvider = TomlConfigProvider()
    config = provider.load(vcs.repo_root)
    config = _apply_cli_overrides(ctx, config, options)

    size = shutil.get_terminal_size()
    with HistorySession.open(
        vcs,
        path,
        config,
        viewport_width=size.columns,
        viewport_height=max(1, size.lines - CHROME_ROWS),
    ) as session:
        session.start()
        HistoryUI(session).run()


def main() -> int:
    """Main entrypoint for the CLI."""
    try:
        cli(obj={})
        return 0
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
