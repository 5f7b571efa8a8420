"""Centralized color definitions for git-hist output.

Provides the color scheme of the terminal UI as prompt_toolkit style classes.
"""

from githist.domain.entities import DisplayRow, LineKind

# prompt_toolkit formatted text: list of (style, text) fragments
StyleFragments = list[tuple[str, str]]


class GitHistColors:
    """Centralized color palette for consistent output across git-hist."""

    # Style classes for each line kind
    LINE_CLASSES = {
        LineKind.UNCHANGED: "class:line.unchanged",
        LineKind.INSERTED: "class:line.inserted",
        LineKind.DELETED: "class:line.deleted",
    }

    @staticmethod
    def get_prompt_toolkit_style() -> dict[str, str]:
        """Get style dictionary for prompt_toolkit Style.from_dict().

        Uses ANSI color names instead of hex codes so colors adapt to the
        user's terminal theme.

        Returns:
            Dictionary mapping style class names to style definitions.
        """
        return {
            "title": "bold",
            "summary": "",
            "change": "fg:ansibrightblack",
            "hint": "fg:ansibrightblack bold",
            "separator": "fg:ansibrightblack",
            "gutter": "fg:ansibrightblack",
            "line.unchanged": "",
            "line.inserted": "fg:ansigreen",
            "line.deleted": "fg:ansired",
            "emphasis": "reverse bold",
            "placeholder": "fg:ansibrightblack italic",
            "status": "reverse",
            "notice": "fg:ansiyellow",
            "error": "fg:ansired bold",
        }

    @staticmethod
    def row_fragments(row: DisplayRow, emphasize: bool) -> StyleFragments:
        """Style one display row as prompt_toolkit fragments.

        Args:
            row: Projected diff row.
            emphasize: Mark the changed spans of paired lines.

        Returns:
            Fragments for the gutter followed by the line text.
        """
        line_class = GitHistColors.LINE_CLASSES[row.kind]
        fragments: StyleFragments = [(f"{line_class} class:gutter", row.gutter)]
        for span in row.spans:
            style = line_class
            if emphasize and span.changed:
                style += " class:emphasis"
            fragments.append((style, span.text))
        return fragments
