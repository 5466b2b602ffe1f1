"""Plain-text tables.

Rendering format:

    <blank line>
    DELIM │NAME  │DESC
    /     │INBOX │desc
    <blank line>

Every cell is left-aligned, padded to the widest value of its column
and followed by one space. Cells are joined with a vertical bar.
"""

from dataclasses import dataclass, field

SEPARATOR = "│"
ELLIPSIS = "…"


@dataclass
class Table:
    """Column headers plus rows of string cells.

    Attributes:
        headers: Column titles, also used as JSON keys (lowercased).
        rows: One list of cells per row, same length as headers.
        shrink_column: Index of the column narrowed to honor a max width.
            Defaults to the last column.
    """

    headers: list[str]
    rows: list[list[str]] = field(default_factory=list)
    shrink_column: int | None = None

    def column_widths(self, max_width: int | None = None) -> list[int]:
        """Width of each column, shrinking one column to fit max_width."""
        widths = [len(header) for header in self.headers]
        for row in self.rows:
            for idx, cell in enumerate(row):
                widths[idx] = max(widths[idx], len(_clean(cell)))

        if max_width is not None and widths:
            # Each cell takes width + 1 trailing space, plus one separator
            # between columns.
            line_width = sum(width + 1 for width in widths) + len(widths) - 1
            overflow = line_width - max_width
            if overflow > 0:
                shrink = self._shrink_index()
                widths[shrink] = max(1, widths[shrink] - overflow)

        return widths

    def _shrink_index(self) -> int:
        if self.shrink_column is None:
            return len(self.headers) - 1
        return self.shrink_column

    def render(self, max_width: int | None = None) -> str:
        """Render the table as text, including the surrounding blank lines."""
        widths = self.column_widths(max_width)
        lines = [_render_row(self.headers, widths)]
        lines.extend(_render_row(row, widths) for row in self.rows)
        return "\n" + "".join(line + "\n" for line in lines) + "\n"

    def to_dicts(self) -> list[dict[str, str]]:
        """Rows as dicts keyed by lowercased header, for JSON output."""
        keys = [header.lower() for header in self.headers]
        return [dict(zip(keys, row)) for row in self.rows]


def _clean(cell) -> str:
    return str(cell).replace("\r", " ").replace("\n", " ")


def _fit(cell: str, width: int) -> str:
    if len(cell) <= width:
        return cell.ljust(width)
    return cell[: width - 1] + ELLIPSIS


def _render_row(cells: list[str], widths: list[int]) -> str:
    return SEPARATOR.join(
        _fit(_clean(cell), width) + " " for cell, width in zip(cells, widths)
    )
