"""Git adapter using the git command-line client."""

from githist.adapters.git_cmd.git_adapter import GitAdapter

__all__ = ["GitAdapter"]
