import pytest

from studymate.application.session.cursor import SessionCursor
from studymate.domain.session.errors import OutOfRangeError


def test_new_cursor_starts_at_zero():
    cursor = SessionCursor(3)
    assert cursor.position == 0
    assert cursor.at_start
    assert not cursor.at_end


def test_advance_clamps_at_last_index():
    cursor = SessionCursor(2)
    assert cursor.advance() is True
    assert cursor.position == 1
    assert cursor.at_end

    assert cursor.advance() is False
    assert cursor.position == 1


def test_retreat_clamps_at_zero():
    cursor = SessionCursor(2)
    assert cursor.retreat() is False
    assert cursor.position == 0

    cursor.advance()
    assert cursor.retreat() is True
    assert cursor.position == 0


@pytest.mark.parametrize("index", [0, 1, 4])
def test_jump_to_in_range(index):
    cursor = SessionCursor(5)
    cursor.jump_to(index)
    assert cursor.position == index


@pytest.mark.parametrize("index", [-1, 5, 100])
def test_jump_to_out_of_range(index):
    cursor = SessionCursor(5)
    with pytest.raises(OutOfRangeError):
        cursor.jump_to(index)
    assert cursor.position == 0


def test_empty_cursor_moves_are_noops():
    cursor = SessionCursor(0)
    assert cursor.position is None
    assert cursor.advance() is False
    assert cursor.retreat() is False
    assert cursor.jump_to(0) is False
    assert cursor.position is None


def test_reset_changes_length():
    cursor = SessionCursor(3)
    cursor.jump_to(2)

    cursor.reset(1)
    assert cursor.position == 0
    assert cursor.at_end

    cursor.reset(0)
    assert cursor.position is None
