"""
Tests for administrative operations: validation, grading, cascades and the audit log.
"""

from datetime import datetime, timezone

import pytest

from conftest import NOW, make_league
from playpredix import db
from playpredix.errors import NotFound, ValidationError
from playpredix.models import AdminAction, Competition, Game, League, PropPrediction, UserPick
from playpredix.services import admin_service
from playpredix.services.pick_service import submit_pick


def test_create_competition_stores_naive_utc(app):
    aware = datetime(2099, 6, 1, 18, 0, tzinfo=timezone.utc)
    competition = admin_service.create_competition("Euro", aware, allow_draws=True, admin_id=None)
    db.session.commit()

    assert competition.lock_date == datetime(2099, 6, 1, 18, 0)
    assert competition.allow_draws is True
    assert AdminAction.query.filter_by(action_type="create_competition").count() == 1


def test_create_competition_requires_name_and_lock_date(app):
    with pytest.raises(ValidationError) as excinfo:
        admin_service.create_competition("  ", NOW)
    assert excinfo.value.message == "Name and Lock Date are required."

    with pytest.raises(ValidationError):
        admin_service.create_competition("Euro", None)


def test_create_team_requires_name(app):
    with pytest.raises(ValidationError) as excinfo:
        admin_service.create_team("")
    assert excinfo.value.message == "Team name is required."


def test_team_cannot_play_itself(world):
    with pytest.raises(ValidationError):
        admin_service.create_game(
            world["competition"].id, world["brazil"].id, world["brazil"].id, NOW
        )


def test_create_game_requires_all_fields_but_stage(world):
    with pytest.raises(ValidationError) as excinfo:
        admin_service.create_game(world["competition"].id, world["brazil"].id, None, NOW)
    assert excinfo.value.message == "All fields except Stage are required."

    game = admin_service.create_game(
        world["competition"].id, world["brazil"].id, world["france"].id, NOW
    )
    assert game.stage is None


def test_create_game_for_unknown_team_is_not_found(world):
    with pytest.raises(NotFound):
        admin_service.create_game(world["competition"].id, world["brazil"].id, 999, NOW)


def test_grading_a_winner_clears_a_draw(world):
    game = world["game"]
    admin_service.grade_game(game.id, is_draw=True, admin_id="admin")
    assert game.is_draw and game.winning_team_id is None

    admin_service.grade_game(game.id, winning_team_id=world["france"].id, admin_id="admin")
    db.session.commit()

    assert game.is_draw is False
    assert game.winning_team_id == world["france"].id
    assert [a.action_type for a in AdminAction.get_recent(competition_id=game.competition_id)] == [
        "regrade_game",
        "grade_game",
    ]


def test_grade_rejects_winner_outside_the_game(world):
    with pytest.raises(ValidationError):
        admin_service.grade_game(world["game"].id, winning_team_id=999)


def test_grade_rejects_both_or_neither_outcome(world):
    with pytest.raises(ValidationError):
        admin_service.grade_game(world["game"].id)
    with pytest.raises(ValidationError):
        admin_service.grade_game(
            world["game"].id, winning_team_id=world["brazil"].id, is_draw=True
        )


def test_draw_needs_competition_that_allows_draws(world):
    world["competition"].allow_draws = False
    db.session.commit()

    with pytest.raises(ValidationError):
        admin_service.grade_game(world["game"].id, is_draw=True)


def test_clear_game_result_returns_game_to_pending(world):
    game = world["game"]
    admin_service.grade_game(game.id, winning_team_id=world["brazil"].id)
    assert admin_service.list_pending_games(world["competition"].id) == []

    admin_service.clear_game_result(game.id)
    assert admin_service.list_pending_games(world["competition"].id) == [game]


def test_grade_prop_overwrites_and_trims(world):
    prop = world["prop"]
    admin_service.grade_prop(prop.id, " Yes ")
    assert prop.correct_answer == "Yes"
    admin_service.grade_prop(prop.id, "No")
    db.session.commit()

    assert prop.correct_answer == "No"
    assert admin_service.list_pending_props() == []
    actions = AdminAction.get_recent(competition_id=prop.competition_id)
    assert [a.action_type for a in actions] == ["regrade_prop", "grade_prop"]
    assert actions[0].action_metadata["previous_answer"] == "Yes"


def test_grade_prop_rejects_blank_answer(world):
    with pytest.raises(ValidationError):
        admin_service.grade_prop(world["prop"].id, "  ")


def test_disallowing_draws_with_draw_results_is_rejected(world):
    admin_service.grade_game(world["game"].id, is_draw=True)
    db.session.commit()

    with pytest.raises(ValidationError):
        admin_service.update_competition(world["competition"].id, allow_draws=False)


def test_delete_team_removes_its_games_and_picks(world):
    submit_pick("alice", str(world["brazil"].id), game_id=world["game"].id, now=NOW)
    db.session.commit()

    admin_service.delete_team(world["brazil"].id, admin_id="admin")
    db.session.commit()

    assert Game.query.count() == 0
    assert UserPick.query.filter(UserPick.game_id.isnot(None)).count() == 0


def test_delete_competition_removes_everything_under_it(world):
    make_league(world["competition"], world["alice"])
    submit_pick("alice", "Yes", prop_prediction_id=world["prop"].id, now=NOW)
    db.session.commit()

    admin_service.delete_competition(world["competition"].id)
    db.session.commit()

    assert Competition.query.count() == 0
    assert Game.query.count() == 0
    assert PropPrediction.query.count() == 0
    assert League.query.count() == 0
    assert UserPick.query.count() == 0
    assert AdminAction.query.filter_by(action_type="delete_competition").count() == 1


def test_unknown_records_are_not_found(app):
    with pytest.raises(NotFound):
        admin_service.grade_game(1, is_draw=True)
    with pytest.raises(NotFound):
        admin_service.grade_prop(1, "Yes")
    with pytest.raises(NotFound):
        admin_service.delete_team(1)
