"""Segmented code input — one logical code shown as per-digit cells."""

from __future__ import annotations

from prepwise_payments.config import settings


class CodeInput:
    """Holds a fixed-length numeric code and the per-cell editing rules.

    Every editing method returns the index of the cell that should have
    focus next, so a terminal or GUI front-end only has to render
    ``cells`` and move its cursor.
    """

    def __init__(self, length: int | None = None) -> None:
        self.length = length or settings.otp_length
        self._cells: list[str] = [""] * self.length

    @property
    def cells(self) -> tuple[str, ...]:
        return tuple(self._cells)

    @property
    def value(self) -> str:
        """The cells joined in order (empty cells contribute nothing)."""
        return "".join(self._cells)

    @property
    def is_complete(self) -> bool:
        return all(self._cells)

    def enter(self, index: int, char: str) -> int:
        """Put one digit in cell *index* and advance focus.

        Anything but a single digit is ignored and focus stays put.
        """
        self._check_index(index)
        if len(char) != 1 or char not in "0123456789":
            return index
        self._cells[index] = char
        return min(index + 1, self.length - 1)

    def backspace(self, index: int) -> int:
        """Clear a filled cell, or step back from an empty one."""
        self._check_index(index)
        if self._cells[index]:
            self._cells[index] = ""
            return index
        return max(index - 1, 0)

    def paste(self, index: int, text: str) -> int:
        """Spread the digits of *text* over the cells starting at *index*.

        Non-digits are dropped and overflow is discarded.  Focus goes to the
        first empty cell after the pasted run, or the last cell when the
        code is full.
        """
        self._check_index(index)
        digits = [ch for ch in text if ch in "0123456789"][: self.length - index]
        for offset, digit in enumerate(digits):
            self._cells[index + offset] = digit

        for pos in range(index + len(digits), self.length):
            if not self._cells[pos]:
                return pos
        return self.length - 1

    def set_value(self, text: str) -> int:
        """Replace the whole code, as if *text* were pasted into a cleared input."""
        self.clear()
        return self.paste(0, text)

    def clear(self) -> None:
        self._cells = [""] * self.length

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.length:
            raise IndexError(f"cell index {index} out of range 0..{self.length - 1}")
