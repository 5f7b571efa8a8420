"""CLI error handling with actionable hints.

Provides consistent error formatting and common error factory functions
for the git-hist command.
"""

from typing import NoReturn

import click


class GitHistCliError(click.ClickException):
    """CLI error with actionable hint for users.

    Attributes:
        message: The primary error message.
        hint: Optional actionable suggestion for the user.

    Example:
        raise GitHistCliError(
            "Not a git repository",
            hint="Run git-hist from inside a git working tree"
        )
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        """Initialize the error with message and optional hint.

        Args:
            message: The primary error message.
            hint: Optional actionable suggestion for the user.
        """
        super().__init__(message)
        self.hint = hint

    def format_message(self) -> str:
        """Format the error message with hint if present.

        Returns:
            Formatted error message, with hint on a new line if provided.
        """
        msg = self.message
        if self.hint:
            msg += f"\nHint: {self.hint}"
        return msg


def not_a_file_error(path: str) -> NoReturn:
    """Raise error when the file argument is a directory.

    Args:
        path: The path given on the command line.

    Raises:
        GitHistCliError: Always raises.
    """
    raise GitHistCliError(
        f"'{path}' is a directory",
        hint="git-hist shows the history of a single file",
    )
