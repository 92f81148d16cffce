"""
Scoring rules for PlayPredix picks

This module grades individual picks. Aggregation and ranking live in
playpredix/services/leaderboard_service.py.

Every function here is pure: it looks only at the values passed in. Outcomes
may be model instances or the plain records the leaderboard snapshot builds;
anything with the right attributes works.
"""

DRAW_PICK = "draw"

CORRECT = "correct"
INCORRECT = "incorrect"
NOT_COUNTED = "not_counted"

POINTS_PER_CORRECT_PICK = 1


def is_game_graded(game):
    return game.winning_team_id is not None or bool(game.is_draw)


def is_prop_graded(prop):
    return prop.correct_answer is not None


def grade_game_pick(pick_value, game):
    """
    Classify a pick on a game.

    Returns:
        CORRECT when the pick matches the graded outcome
        INCORRECT when the game is graded and the pick does not match
        NOT_COUNTED when the game has no result yet
    """
    if game is None or not is_game_graded(game):
        return NOT_COUNTED

    if game.is_draw:
        return CORRECT if pick_value == DRAW_PICK else INCORRECT

    # Team picks are stored as the team id in string form
    return CORRECT if pick_value == str(game.winning_team_id) else INCORRECT


def grade_prop_pick(pick_value, prop):
    """
    Classify a pick on a prop prediction.

    Answers compare case-sensitively and exactly: "yes" does not match "Yes".
    """
    if prop is None or not is_prop_graded(prop):
        return NOT_COUNTED

    return CORRECT if pick_value == prop.correct_answer else INCORRECT


def calculate_pick_score(grade):
    """1 point for a correct pick, nothing otherwise. No partial or negative scoring."""
    return POINTS_PER_CORRECT_PICK if grade == CORRECT else 0
