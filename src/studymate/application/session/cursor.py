"""Session cursor: the position of the currently displayed item."""

from studymate.domain.session.errors import OutOfRangeError


class SessionCursor:
    """
    Clamped cursor over ``length`` items.

    ``position`` is ``None`` while there are no items; moves are then no-ops.
    Each mutating method returns True when the position actually changed.
    """

    def __init__(self, length: int = 0):
        self._length = 0
        self._position: int | None = None
        self.reset(length)

    @property
    def position(self) -> int | None:
        return self._position

    @property
    def length(self) -> int:
        return self._length

    @property
    def at_start(self) -> bool:
        return self._position == 0

    @property
    def at_end(self) -> bool:
        return self._position is not None and self._position == self._length - 1

    def reset(self, length: int) -> None:
        if length < 0:
            raise ValueError(f"length must be >= 0, got {length}")
        self._length = length
        self._position = 0 if length > 0 else None

    def advance(self) -> bool:
        if self._position is None or self.at_end:
            return False
        self._position += 1
        return True

    def retreat(self) -> bool:
        if self._position is None or self._position == 0:
            return False
        self._position -= 1
        return True

    def jump_to(self, index: int) -> bool:
        if self._position is None:
            return False
        if not 0 <= index < self._length:
            raise OutOfRangeError(f"Cannot jump to {index}: valid range is 0..{self._length - 1}")
        moved = index != self._position
        self._position = index
        return moved
