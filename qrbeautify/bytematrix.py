"""
Bounds-checked 2-D container used for module grids and the augmented
matrix of the erasure solver.

Cells are addressed as (row, col). Out-of-range access raises IndexError
instead of silently wrapping the way negative list indices would.
"""

from typing import Iterator, List, Optional


class ByteMatrix:
    """Rectangular grid of small integers (or None for unassigned cells)."""

    def __init__(self, height: int, width: int, fill: Optional[int] = 0):
        if height < 0 or width < 0:
            raise ValueError(f"Invalid matrix shape {height}x{width}")
        self.height = height
        self.width = width
        self._rows: List[List[Optional[int]]] = [[fill] * width for _ in range(height)]

    def _check(self, row: int, col: int):
        if not (0 <= row < self.height and 0 <= col < self.width):
            raise IndexError(f"({row}, {col}) outside {self.height}x{self.width} matrix")

    def get(self, row: int, col: int) -> Optional[int]:
        self._check(row, col)
        return self._rows[row][col]

    def set(self, row: int, col: int, value: Optional[int]):
        self._check(row, col)
        self._rows[row][col] = value

    def swap_rows(self, r1: int, r2: int):
        self._check(r1, 0)
        self._check(r2, 0)
        self._rows[r1], self._rows[r2] = self._rows[r2], self._rows[r1]

    def copy(self) -> 'ByteMatrix':
        result = ByteMatrix(self.height, self.width)
        result._rows = [list(r) for r in self._rows]
        return result

    def rows(self) -> Iterator[List[Optional[int]]]:
        for r in self._rows:
            yield list(r)

    def to_list(self) -> List[List[Optional[int]]]:
        return [list(r) for r in self._rows]

    def __eq__(self, other) -> bool:
        if not isinstance(other, ByteMatrix):
            return NotImplemented
        return self._rows == other._rows

    def __repr__(self) -> str:
        lines = []
        for r in self._rows:
            lines.append(" ".join("." if v is None else str(v) for v in r))
        return "\n".join(lines)
