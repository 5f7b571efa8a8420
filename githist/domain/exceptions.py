"""Domain exceptions for git-hist.

These exceptions represent failures of the history engine and its
collaborators. They should be caught at the application boundary (CLI, TUI)
and converted to appropriate user-facing messages.
"""


class GitHistError(Exception):
    """Base exception for all domain errors.

    Attributes:
        message: User-facing error message.
        hint: Optional actionable suggestion.
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint


class NotFoundError(GitHistError):
    """Raised when a path has no history or navigation passes the known end."""

    pass


class ObjectReadError(GitHistError):
    """Raised when git cannot read the objects of a single revision.

    Attributes:
        revision: Identity of the revision whose read failed, if known.
    """

    def __init__(
        self, message: str, revision: str | None = None, hint: str | None = None
    ) -> None:
        super().__init__(message, hint=hint)
        self.revision = revision


class RepositoryError(GitHistError):
    """Raised when a repository cannot be opened for browsing."""

    pass


class ConfigError(GitHistError, ValueError):
    """Raised when a configuration option has an invalid value.

    Attributes:
        option: Dotted name of the offending option (e.g. "display.tab_size").
        detail: What is wrong with the value.
    """

    def __init__(self, option: str, message: str, hint: str | None = None) -> None:
        super().__init__(f"Invalid value for '{option}': {message}", hint=hint)
        self.option = option
        self.detail = message
