"""
Tests for pick admission: lock timing, upserts, league scoping and input checks.
"""

from datetime import timedelta

import pytest

from conftest import KICKOFF, NOW, make_competition, make_game, make_league
from playpredix import db
from playpredix.errors import InvalidScope, NotFound, PickLocked, ValidationError
from playpredix.models import UserPick
from playpredix.services.pick_service import get_user_picks, submit_pick, submit_picks


def test_pick_before_kickoff_is_saved(world):
    pick, created = submit_pick(
        "alice", str(world["brazil"].id), game_id=world["game"].id, now=NOW
    )
    db.session.commit()

    assert created is True
    assert pick.league_id is None
    assert pick.competition_id == world["competition"].id


def test_pick_at_the_lock_instant_is_rejected(world):
    with pytest.raises(PickLocked):
        submit_pick("alice", str(world["brazil"].id), game_id=world["game"].id, now=KICKOFF)


def test_pick_one_second_before_lock_is_accepted(world):
    _, created = submit_pick(
        "alice",
        "Yes",
        prop_prediction_id=world["prop"].id,
        now=KICKOFF - timedelta(seconds=1),
    )
    assert created


def test_resubmitting_overwrites_instead_of_duplicating(world):
    game = world["game"]
    first, _ = submit_pick("alice", str(world["brazil"].id), game_id=game.id, now=NOW)
    db.session.commit()
    second, created = submit_pick(
        "alice", str(world["france"].id), game_id=game.id, now=NOW + timedelta(minutes=1)
    )
    db.session.commit()

    assert created is False
    assert second.id == first.id
    assert second.pick == str(world["france"].id)
    assert UserPick.query.filter_by(user_id="alice", game_id=game.id).count() == 1


def test_existing_picks_remain_readable_after_lock(world):
    submit_pick("alice", "Yes", prop_prediction_id=world["prop"].id, now=NOW)
    db.session.commit()

    with pytest.raises(PickLocked):
        submit_pick("alice", "No", prop_prediction_id=world["prop"].id, now=KICKOFF)
    db.session.rollback()

    picks = get_user_picks("alice", world["competition"].id)
    assert [p.pick for p in picks] == ["Yes"]


def test_public_and_league_picks_are_separate(world):
    league = make_league(world["competition"], world["alice"])
    db.session.commit()
    game = world["game"]

    submit_pick("alice", str(world["brazil"].id), game_id=game.id, now=NOW)
    _, created = submit_pick(
        "alice", str(world["france"].id), game_id=game.id, league_id=league.id, now=NOW
    )
    db.session.commit()

    assert created is True
    assert [p.pick for p in get_user_picks("alice", world["competition"].id)] == [
        str(world["brazil"].id)
    ]
    assert [
        p.pick for p in get_user_picks("alice", world["competition"].id, league_id=league.id)
    ] == [str(world["france"].id)]


def test_non_member_cannot_pick_in_league(world):
    league = make_league(world["competition"], world["alice"])
    db.session.commit()

    with pytest.raises(InvalidScope):
        submit_pick(
            "bob", str(world["brazil"].id), game_id=world["game"].id, league_id=league.id, now=NOW
        )


def test_league_of_another_competition_is_invalid_scope(world):
    other = make_competition(name="Euro")
    league = make_league(other, world["alice"])
    db.session.commit()

    with pytest.raises(InvalidScope):
        submit_pick(
            "alice", str(world["brazil"].id), game_id=world["game"].id, league_id=league.id, now=NOW
        )


def test_pick_must_name_a_team_in_the_game(world):
    with pytest.raises(ValidationError):
        submit_pick("alice", "999", game_id=world["game"].id, now=NOW)


def test_draw_pick_needs_draws_allowed(world):
    no_draws = make_competition(name="Cup", allow_draws=False)
    game = make_game(no_draws, world["brazil"], world["france"])
    db.session.commit()

    with pytest.raises(ValidationError):
        submit_pick("alice", "draw", game_id=game.id, now=NOW)

    _, created = submit_pick("alice", "draw", game_id=world["game"].id, now=NOW)
    assert created


def test_pick_needs_exactly_one_target(world):
    with pytest.raises(ValidationError):
        submit_pick("alice", "Yes", now=NOW)
    with pytest.raises(ValidationError):
        submit_pick(
            "alice", "Yes", game_id=world["game"].id, prop_prediction_id=world["prop"].id, now=NOW
        )


def test_blank_pick_is_rejected(world):
    with pytest.raises(ValidationError):
        submit_pick("alice", "   ", prop_prediction_id=world["prop"].id, now=NOW)


def test_unknown_target_is_not_found(world):
    with pytest.raises(NotFound):
        submit_pick("alice", "1", game_id=12345, now=NOW)


def test_batch_saves_open_picks_and_reports_the_rest(world):
    late_game = make_game(
        world["competition"], world["brazil"], world["france"], game_date=NOW - timedelta(hours=1)
    )
    db.session.commit()

    result = submit_picks(
        "alice",
        world["competition"].id,
        [
            {"game_id": world["game"].id, "pick": str(world["brazil"].id)},
            {"game_id": late_game.id, "pick": str(world["brazil"].id)},
            {"prop_prediction_id": world["prop"].id, "pick": "Yes"},
            {"game_id": 999, "pick": "1"},
        ],
        now=NOW,
    )
    db.session.commit()

    assert len(result["saved"]) == 2
    assert [e["error"] for e in result["errors"]] == ["pick_locked", "not_found"]
    assert UserPick.query.filter_by(user_id="alice").count() == 2


def test_batch_rejects_targets_from_another_competition(world):
    other = make_competition(name="Euro")
    foreign_game = make_game(other, world["brazil"], world["france"])
    db.session.commit()

    result = submit_picks(
        "alice",
        world["competition"].id,
        [{"game_id": foreign_game.id, "pick": str(world["brazil"].id)}],
        now=NOW,
    )

    assert result["saved"] == []
    assert result["errors"][0]["error"] == "validation_error"


def test_batch_reports_malformed_items_instead_of_failing(world):
    result = submit_picks(
        "alice",
        world["competition"].id,
        [
            {"game_id": [world["game"].id], "pick": str(world["brazil"].id)},
            {"game_id": "abc", "pick": "1"},
            "not an object",
            {"prop_prediction_id": str(world["prop"].id), "pick": " Yes "},
        ],
        now=NOW,
    )

    assert [e["error"] for e in result["errors"]] == ["validation_error"] * 3
    assert len(result["saved"]) == 1
    assert result["saved"][0].prop_prediction_id == world["prop"].id
    assert result["saved"][0].pick == "Yes"


def test_cross_competition_pick_is_rejected_before_saving(world):
    other = make_competition(name="Euro")
    db.session.commit()

    with pytest.raises(ValidationError):
        submit_pick(
            "alice",
            str(world["brazil"].id),
            game_id=world["game"].id,
            now=NOW,
            competition_id=other.id,
        )
    assert UserPick.query.filter_by(user_id="alice").count() == 0
