"""
Rendering the results matrix.

The table has one row per (test, backend, optimizer) and one column per
memory model. Rows are built by repeatedly taking the lowest remaining
profile from a working copy of the matrix and consuming every entry that
shares its row labels, so no separate grouping index is needed.
"""

from __future__ import annotations

import io
import threading

from rich.console import Console
from rich.table import Table
from rich.text import Text

from gridrunner.datastructures.matrix import ResultsMatrix
from gridrunner.datastructures.profile import MemoryModel, Profile, StatusKind

RENDER_WIDTH = 120


def _cell(status: StatusKind | None, color: bool) -> Text:
    if status is None or status is StatusKind.NONE:
        return Text(" ")
    return Text(status.glyph, style=status.style if color else "")


def matrix_rows(
    entries: dict[Profile, StatusKind],
) -> list[tuple[tuple[str, str, str], list[StatusKind | None]]]:
    """Group ``entries`` into table rows; rows without any status are dropped."""
    working = dict(entries)
    rows: list[tuple[tuple[str, str, str], list[StatusKind | None]]] = []
    while working:
        # sorted() is stable, so ties keep their insertion order
        first = sorted(working, key=lambda profile: profile.order_key)[0]
        cells: list[StatusKind | None] = []
        for memory in MemoryModel:
            cells.append(working.pop(first.with_memory(memory), None))
        if any(cell is not None and cell is not StatusKind.NONE for cell in cells):
            rows.append((first.labels, cells))
    return rows


def matrix_table(
    matrix: ResultsMatrix | dict[Profile, StatusKind],
    *,
    version_label: str = "",
    color: bool = True,
) -> Table:
    """Build a rich table for ``matrix``."""
    entries = matrix.snapshot() if isinstance(matrix, ResultsMatrix) else matrix
    title = f"nim-{version_label}" if version_label else "nim"
    table = Table(show_lines=False, box=None, pad_edge=False)
    for header in (title, "cp", "opt"):
        table.add_column(header, no_wrap=True)
    for memory in MemoryModel:
        table.add_column(memory.column_label, justify="center", no_wrap=True)

    for labels, cells in matrix_rows(entries):
        table.add_row(*labels, *(_cell(cell, color) for cell in cells))
    return table


def render_matrix(
    matrix: ResultsMatrix | dict[Profile, StatusKind],
    *,
    version_label: str = "",
    color: bool = False,
    width: int = RENDER_WIDTH,
) -> str:
    """Render ``matrix`` to a string."""
    buffer = io.StringIO()
    console = Console(
        file=buffer,
        width=width,
        color_system="standard" if color else None,
        force_terminal=color,
        highlight=False,
    )
    console.print(
        matrix_table(matrix, version_label=version_label, color=color)
    )
    return buffer.getvalue()


class MatrixReporter:
    """Draws the matrix whenever it changes and prints run diagnostics."""

    def __init__(
        self,
        console: Console | None = None,
        *,
        version_label: str = "",
        color: bool = True,
    ) -> None:
        self.console = console if console is not None else Console(stderr=True)
        self.version_label = version_label
        self.color = color
        self._lock = threading.Lock()
        self.renders = 0

    def __call__(self, matrix: ResultsMatrix) -> None:
        self.show(matrix)

    def show(self, matrix: ResultsMatrix) -> None:
        table = matrix_table(matrix, version_label=self.version_label, color=self.color)
        with self._lock:
            self.console.print()
            self.console.print(table)
            self.console.print()
            self.renders += 1

    def checkpoint(self, message: str) -> None:
        """Print ``message`` verbatim, without wrapping long command lines."""
        with self._lock:
            self.console.print(message, markup=False, highlight=False, soft_wrap=True)
