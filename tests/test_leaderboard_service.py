"""
Tests for leaderboard computation: the pure ranking engine and the
database-backed service.
"""

import random
from datetime import datetime, timedelta, timezone

import pytest

from conftest import NOW, make_competition, make_league
from playpredix import db
from playpredix.errors import InvalidScope, NotFound
from playpredix.models import LeagueMember
from playpredix.services.leaderboard_service import (
    GameOutcome,
    LeaderboardService,
    LeaderboardSnapshot,
    PickRecord,
    PropOutcome,
    compute_leaderboard,
)
from playpredix.services.pick_service import submit_pick

T0 = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


def _by_id(entries):
    return {entry.participant_id: entry for entry in entries}


# Pure engine


def test_draw_result_scores_draw_pick():
    snapshot = LeaderboardSnapshot(
        participants={"p": "P", "q": "Q"},
        picks=[
            PickRecord("p", "draw", game_id=1, submitted_at=T0),
            PickRecord("q", "1", game_id=1, submitted_at=T0),
        ],
        games={1: GameOutcome(1, is_draw=True)},
    )
    entries = _by_id(compute_leaderboard(snapshot))

    assert (entries["p"].correct_picks, entries["p"].incorrect_picks, entries["p"].score) == (1, 0, 1)
    assert (entries["q"].correct_picks, entries["q"].incorrect_picks, entries["q"].score) == (0, 1, 0)


def test_prop_answer_scores_exact_match():
    snapshot = LeaderboardSnapshot(
        participants={"p": "P", "r": "R"},
        picks=[
            PickRecord("p", "Yes", prop_prediction_id=5),
            PickRecord("r", "No", prop_prediction_id=5),
        ],
        props={5: PropOutcome(5, correct_answer="Yes")},
    )
    entries = _by_id(compute_leaderboard(snapshot))

    assert entries["p"].correct_picks == 1
    assert entries["r"].incorrect_picks == 1
    assert entries["r"].score == 0


def test_more_graded_picks_wins_a_score_tie():
    games = {i: GameOutcome(i, winning_team_id=10) for i in range(1, 4)}
    snapshot = LeaderboardSnapshot(
        participants={"p": "P", "r": "R"},
        picks=[
            PickRecord("p", "10", game_id=1),
            PickRecord("p", "10", game_id=2),
            PickRecord("p", "11", game_id=3),
            PickRecord("r", "10", game_id=1),
            PickRecord("r", "10", game_id=2),
        ],
        games=games,
    )
    entries = compute_leaderboard(snapshot)

    assert [e.participant_id for e in entries] == ["p", "r"]
    assert entries[0].score == entries[1].score == 2
    assert entries[0].total_graded_picks == 3
    assert [e.rank for e in entries] == [1, 2]


def test_earliest_last_submission_breaks_remaining_ties():
    snapshot = LeaderboardSnapshot(
        participants={"early": "E", "late": "L"},
        picks=[
            PickRecord("late", "10", game_id=1, submitted_at=T0 + timedelta(minutes=5)),
            PickRecord("early", "10", game_id=1, submitted_at=T0),
        ],
        games={1: GameOutcome(1, winning_team_id=10)},
    )

    ranked = compute_leaderboard(snapshot, submission_tiebreak=True)
    assert [(e.participant_id, e.rank) for e in ranked] == [("early", 1), ("late", 2)]

    shared = compute_leaderboard(snapshot, submission_tiebreak=False)
    assert [e.rank for e in shared] == [1, 1]


def test_exact_ties_share_rank_and_skip_positions():
    snapshot = LeaderboardSnapshot(
        participants={"a": "A", "b": "B", "c": "C", "d": "D"},
        picks=[
            PickRecord("a", "10", game_id=1, submitted_at=T0),
            PickRecord("b", "11", game_id=1, submitted_at=T0),
            PickRecord("c", "11", game_id=1, submitted_at=T0),
        ],
        games={1: GameOutcome(1, winning_team_id=10)},
    )
    entries = compute_leaderboard(snapshot)

    assert [(e.participant_id, e.rank) for e in entries] == [
        ("a", 1),
        ("b", 2),
        ("c", 2),
        ("d", 4),
    ]


def test_ungraded_picks_do_not_count():
    snapshot = LeaderboardSnapshot(
        participants={"p": "P"},
        picks=[
            PickRecord("p", "10", game_id=1, submitted_at=T0),
            PickRecord("p", "Yes", prop_prediction_id=2, submitted_at=T0),
        ],
        games={1: GameOutcome(1)},
        props={2: PropOutcome(2)},
    )
    (entry,) = compute_leaderboard(snapshot)

    assert (entry.score, entry.correct_picks, entry.incorrect_picks, entry.total_graded_picks) == (0, 0, 0, 0)
    assert entry.last_submission_at == T0


def test_picks_from_outside_the_snapshot_are_ignored():
    snapshot = LeaderboardSnapshot(
        participants={"p": "P"},
        picks=[PickRecord("stranger", "10", game_id=1)],
        games={1: GameOutcome(1, winning_team_id=10)},
    )
    entries = compute_leaderboard(snapshot)

    assert [e.participant_id for e in entries] == ["p"]
    assert entries[0].score == 0


def test_result_is_independent_of_pick_order_and_repeatable():
    participants = {f"u{i}": f"User {i}" for i in range(8)}
    games = {g: GameOutcome(g, winning_team_id=1) for g in range(1, 6)}
    rng = random.Random(42)
    picks = [
        PickRecord(pid, rng.choice(["1", "2"]), game_id=g, submitted_at=T0 + timedelta(minutes=rng.randint(0, 3)))
        for pid in participants
        for g in games
    ]
    snapshot = LeaderboardSnapshot(participants=participants, picks=picks, games=games)

    expected = compute_leaderboard(snapshot)
    assert compute_leaderboard(snapshot) == expected

    shuffled = list(picks)
    rng.shuffle(shuffled)
    reordered = LeaderboardSnapshot(participants=participants, picks=shuffled, games=games)
    assert compute_leaderboard(reordered) == expected

    scores = [e.score for e in expected]
    assert scores == sorted(scores, reverse=True)


# Database-backed service


def _grade_brazil_win(world):
    world["game"].set_result(winning_team_id=world["brazil"].id)
    db.session.commit()


def test_public_leaderboard_lists_participants_with_public_picks(world):
    game = world["game"]
    submit_pick("alice", str(world["brazil"].id), game_id=game.id, now=NOW)
    submit_pick("bob", str(world["france"].id), game_id=game.id, now=NOW)
    db.session.commit()
    _grade_brazil_win(world)

    board = LeaderboardService().get_leaderboard(world["competition"].id, participant_id="bob")

    assert [(e.participant_id, e.score, e.rank) for e in board.entries] == [
        ("alice", 1, 1),
        ("bob", 0, 2),
    ]
    assert board.current_entry.participant_id == "bob"
    assert board.league is None


def test_league_picks_stay_out_of_public_leaderboard(world):
    league = make_league(world["competition"], world["alice"], members=[world["bob"]])
    db.session.commit()
    submit_pick("alice", str(world["brazil"].id), game_id=world["game"].id, league_id=league.id, now=NOW)
    db.session.commit()
    _grade_brazil_win(world)

    public = LeaderboardService().get_leaderboard(world["competition"].id)
    private = LeaderboardService().get_leaderboard(world["competition"].id, league_id=league.id)

    assert public.entries == []
    assert _by_id(private.entries)["alice"].score == 1


def test_league_member_without_picks_appears_with_zeroes(world):
    league = make_league(world["competition"], world["alice"], members=[world["bob"]])
    db.session.commit()

    board = LeaderboardService().get_league_leaderboard(league.id)
    bob = _by_id(board.entries)["bob"]

    assert (bob.score, bob.correct_picks, bob.incorrect_picks, bob.total_graded_picks) == (0, 0, 0, 0)
    assert bob.display_name == "bob"


def test_missing_profile_is_shown_as_unknown_user(world):
    league = make_league(world["competition"], world["alice"])
    # SQLite does not enforce the profile foreign key
    db.session.add(LeagueMember(league_id=league.id, user_id="ghost"))
    db.session.commit()

    board = LeaderboardService().get_league_leaderboard(league.id)
    assert _by_id(board.entries)["ghost"].display_name == "Unknown User"


def test_league_from_other_competition_is_invalid_scope(world):
    other = make_competition(name="Euro")
    league = make_league(other, world["alice"])
    db.session.commit()

    with pytest.raises(InvalidScope):
        LeaderboardService().get_leaderboard(world["competition"].id, league_id=league.id)


def test_unknown_league_is_invalid_scope(world):
    with pytest.raises(InvalidScope):
        LeaderboardService().get_leaderboard(world["competition"].id, league_id="missing")


def test_unknown_competition_is_not_found(app):
    with pytest.raises(NotFound):
        LeaderboardService().get_leaderboard(999)


def test_unknown_league_leaderboard_is_invalid_scope(app):
    with pytest.raises(InvalidScope):
        LeaderboardService().get_league_leaderboard("missing")


def test_tiebreak_policy_follows_config(app, world):
    app.config["LEADERBOARD_SUBMISSION_TIEBREAK"] = False
    assert LeaderboardService().submission_tiebreak is False
    assert LeaderboardService(submission_tiebreak=True).submission_tiebreak is True
