import bisect
import re
from dataclasses import dataclass, field

from accessor_nav.models import Position

_WORD_RE = re.compile(r"\$?[A-Za-z_][A-Za-z0-9_]*")


@dataclass(frozen=True)
class SourceDocument:
    """Text of one source file plus offset/position arithmetic."""

    path: str
    text: str
    _line_starts: list[int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        starts = [0]
        for index, char in enumerate(self.text):
            if char == "\n":
                starts.append(index + 1)
        object.__setattr__(self, "_line_starts", starts)

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    def line_text(self, row: int) -> str:
        if row < 0 or row >= self.line_count:
            return ""
        start = self._line_starts[row]
        end = self._line_starts[row + 1] - 1 if row + 1 < self.line_count else len(self.text)
        return self.text[start:end].rstrip("\r")

    def offset_at(self, position: Position) -> int:
        row = min(max(position.row, 0), self.line_count - 1)
        line = self.line_text(row)
        return self._line_starts[row] + min(max(position.column, 0), len(line))

    def position_at(self, offset: int) -> Position:
        offset = min(max(offset, 0), len(self.text))
        row = bisect.bisect_right(self._line_starts, offset) - 1
        return Position(row=row, column=offset - self._line_starts[row])

    def word_range_at(self, position: Position) -> tuple[int, int] | None:
        """Column span of the word containing ``position`` on its line."""
        line = self.line_text(position.row)
        for match in _WORD_RE.finditer(line):
            if match.start() <= position.column <= match.end():
                return match.start(), match.end()
        return None

    def word_at(self, position: Position) -> str | None:
        span = self.word_range_at(position)
        if span is None:
            return None
        return self.line_text(position.row)[span[0] : span[1]]
