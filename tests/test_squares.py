import chess
import pytest

from chess_tracker.game.squares import (
    Occupant,
    flatten_board,
    index_to_chess_square,
    index_to_square,
    square_color,
    square_to_index,
)


def test_corner_indices():
    assert index_to_square(0) == "a8"
    assert index_to_square(7) == "h8"
    assert index_to_square(56) == "a1"
    assert index_to_square(63) == "h1"
    assert index_to_square(52) == "e2"
    assert index_to_square(36) == "e4"


def test_square_to_index_inverts_index_to_square():
    for index in range(64):
        assert square_to_index(index_to_square(index)) == index


def test_python_chess_square_mapping():
    assert index_to_chess_square(0) == chess.A8
    assert index_to_chess_square(63) == chess.H1
    assert index_to_chess_square(52) == chess.E2


@pytest.mark.parametrize("bad", ["", "i1", "a9", "e22", "zz"])
def test_square_to_index_rejects_garbage(bad):
    with pytest.raises(ValueError):
        square_to_index(bad)


def test_index_out_of_range():
    with pytest.raises(ValueError):
        index_to_square(64)


def test_square_colors():
    assert square_color(0) == "w"     # a8 is light
    assert square_color(1) == "b"
    assert square_color(8) == "b"
    assert square_color(63) == "w"    # h1 is light


def test_flatten_board_keeps_row_major_order():
    grid = [[None] * 8 for _ in range(8)]
    grid[6][4] = Occupant("p", "w")
    flat = flatten_board(grid)
    assert len(flat) == 64
    assert flat[52] == Occupant("p", "w")


def test_flatten_board_rejects_wrong_shape():
    with pytest.raises(ValueError):
        flatten_board([[None] * 8] * 7)
