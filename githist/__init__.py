"""git-hist: browse the git history of a single file in the terminal."""
