from chess_tracker.game.inference import InferenceStatus, infer_move
from chess_tracker.game.rules import ChessRules, LegalMove
from chess_tracker.game.squares import Occupant, square_to_index


def idx(*names):
    return [square_to_index(n) for n in names]


def test_single_legal_move_matches():
    moves = [LegalMove("e2", "e4", None, "e4", "e2e4")]
    result = infer_move(idx("e2", "e4"), moves)
    assert result.status is InferenceStatus.MATCHED
    assert result.move == moves[0]


def test_order_of_changed_squares_does_not_matter():
    moves = [LegalMove("e2", "e4", None, "e4", "e2e4")]
    assert infer_move(idx("e4", "e2"), moves).move == moves[0]


def test_no_matching_pair_returns_no_move():
    moves = [LegalMove("e2", "e4", None, "e4", "e2e4")]
    result = infer_move(idx("d2", "d4"), moves)
    assert result.status is InferenceStatus.NO_MOVE
    assert result.move is None
    assert not result.found


def test_fewer_than_two_squares():
    moves = [LegalMove("e2", "e4", None, "e4", "e2e4")]
    assert infer_move([], moves).status is InferenceStatus.NO_MOVE
    assert infer_move(idx("e2"), moves).status is InferenceStatus.NO_MOVE


def test_start_position_with_real_rules():
    rules = ChessRules()
    result = infer_move([52, 36], rules.legal_moves())
    assert result.move.uci == "e2e4"
    assert result.move.san == "e4"


def test_capture_is_found():
    rules = ChessRules()
    rules.apply_move("e2e4")
    rules.apply_move("d7d5")
    result = infer_move(idx("e4", "d5"), rules.legal_moves())
    assert result.status is InferenceStatus.MATCHED
    assert result.move.san == "exd5"
    assert result.move.is_capture


def test_promotion_is_flagged_for_manual_choice():
    rules = ChessRules("4k3/P7/8/8/8/8/8/4K3 w - - 0 1")
    result = infer_move(idx("a7", "a8"), rules.legal_moves())
    assert result.status is InferenceStatus.AMBIGUOUS_PROMOTION
    assert result.needs_disambiguation
    assert {m.promotion for m in result.candidates} == {"q", "r", "b", "n"}
    assert result.move == result.candidates[0]
    assert result.move.from_square == "a7" and result.move.to_square == "a8"


def test_multiple_non_promotion_candidates_take_first():
    moves = [
        LegalMove("a1", "b2", None, "Qb2", "a1b2"),
        LegalMove("b2", "a1", None, "Qa1", "b2a1"),
    ]
    result = infer_move(idx("a1", "b2"), moves)
    assert result.status is InferenceStatus.MATCHED
    assert result.move == moves[0]


def test_board_state_is_rank_eight_first():
    grid = ChessRules().board_state()
    assert grid[0][0] == Occupant("r", "b")
    assert grid[0][4] == Occupant("k", "b")
    assert grid[7][3] == Occupant("q", "w")
    assert grid[4] == [None] * 8
