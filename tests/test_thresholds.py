from chess_tracker.game.squares import Occupant
from chess_tracker.vision.thresholds import square_threshold

DARK_SQUARE = 1     # b8
LIGHT_SQUARE = 0    # a8

BLACK_PAWN = Occupant("p", "b")
WHITE_PAWN = Occupant("p", "w")


def test_dark_piece_on_dark_square():
    assert square_threshold(DARK_SQUARE, BLACK_PAWN, 80) == 32


def test_empty_dark_square():
    assert square_threshold(DARK_SQUARE, None, 80) == 40


def test_light_piece_on_light_square():
    assert square_threshold(LIGHT_SQUARE, WHITE_PAWN, 80) == 48


def test_unrelated_combinations_keep_base():
    assert square_threshold(LIGHT_SQUARE, BLACK_PAWN, 80) == 80
    assert square_threshold(LIGHT_SQUARE, None, 80) == 80
    assert square_threshold(DARK_SQUARE, WHITE_PAWN, 80) == 80


def test_floors_apply_at_low_sensitivity():
    assert square_threshold(DARK_SQUARE, BLACK_PAWN, 5) == 10
    assert square_threshold(DARK_SQUARE, None, 5) == 15
    assert square_threshold(LIGHT_SQUARE, WHITE_PAWN, 5) == 20
    assert square_threshold(LIGHT_SQUARE, None, 5) == 5


def test_occupant_colour_flags():
    assert Occupant("p", "b").is_dark and not Occupant("p", "b").is_light
    assert Occupant("q", "w").is_light and not Occupant("q", "w").is_dark
