"""
PlayPredix Leaderboard Service

Builds ranked leaderboards for a competition, or for a private league scoped
to a competition. Leaderboards are computed on every request from the current
picks and outcomes; nothing here writes to the database or caches results.

The work is split in two:

* LeaderboardService loads a LeaderboardSnapshot from the database. Joined
  records are flattened here so the scoring code only ever sees one related
  record or none.
* compute_leaderboard() is a pure function of a snapshot. Same snapshot in,
  same ordered entries out, whatever order the picks arrived in.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, List, Optional

from flask import current_app, has_app_context

from playpredix import db
from playpredix.errors import InvalidScope, NotFound
from playpredix.models import Competition, Game, League, Profile, PropPrediction, UserPick
from playpredix.utils.scoring import (
    CORRECT,
    INCORRECT,
    calculate_pick_score,
    grade_game_pick,
    grade_prop_pick,
)
from playpredix.utils.timezone_utils import ensure_utc, isoformat_utc

logger = logging.getLogger(__name__)

UNKNOWN_DISPLAY_NAME = "Unknown User"


@dataclass(frozen=True)
class GameOutcome:
    game_id: int
    winning_team_id: Optional[int] = None
    is_draw: bool = False


@dataclass(frozen=True)
class PropOutcome:
    prop_prediction_id: int
    correct_answer: Optional[str] = None


@dataclass(frozen=True)
class PickRecord:
    participant_id: str
    pick: str
    game_id: Optional[int] = None
    prop_prediction_id: Optional[int] = None
    submitted_at: Optional[datetime] = None


@dataclass(frozen=True)
class LeaderboardSnapshot:
    """Everything needed to rank one competition context"""

    participants: Dict[str, str]  # participant id -> display name
    picks: List[PickRecord] = field(default_factory=list)
    games: Dict[int, GameOutcome] = field(default_factory=dict)
    props: Dict[int, PropOutcome] = field(default_factory=dict)


@dataclass(frozen=True)
class LeaderboardEntry:
    participant_id: str
    display_name: str
    score: int = 0
    correct_picks: int = 0
    incorrect_picks: int = 0
    total_graded_picks: int = 0
    last_submission_at: Optional[datetime] = None
    rank: int = 0

    def to_dict(self):
        return {
            "rank": self.rank,
            "user_id": self.participant_id,
            "username": self.display_name,
            "score": self.score,
            "correct_picks": self.correct_picks,
            "incorrect_picks": self.incorrect_picks,
            "total_picks": self.total_graded_picks,
            "last_submission_at": isoformat_utc(self.last_submission_at),
        }


@dataclass
class Leaderboard:
    competition: Competition
    entries: List[LeaderboardEntry]
    league: Optional[League] = None
    current_entry: Optional[LeaderboardEntry] = None

    def to_dict(self):
        return {
            "competition": self.competition.to_dict(),
            "league": self.league.to_dict() if self.league else None,
            "leaderboard": [entry.to_dict() for entry in self.entries],
            "me": self.current_entry.to_dict() if self.current_entry else None,
        }


def _grade(pick, snapshot):
    if pick.game_id is not None:
        return grade_game_pick(pick.pick, snapshot.games.get(pick.game_id))
    return grade_prop_pick(pick.pick, snapshot.props.get(pick.prop_prediction_id))


def _ranking_key(entry, submission_tiebreak):
    """Criteria that decide rank; entries equal here share a rank"""
    key = (-entry.score, -entry.total_graded_picks)
    if submission_tiebreak:
        # Earliest last submission first; nobody-submitted sorts last
        submitted = entry.last_submission_at
        key += (submitted is None, ensure_utc(submitted) if submitted else datetime.min)
    return key


def compute_leaderboard(snapshot, submission_tiebreak=True):
    """
    Score and rank every participant in the snapshot.

    Ordering: score descending, then graded picks descending, then (when
    submission_tiebreak is on) earliest last submission. Participant id is
    the final sort key so output order is fully deterministic; it never
    separates ranks. Ties on every ranking criterion share a rank and the
    next entry takes its 1-based position (1, 2, 2, 4).

    Picks from participants outside the snapshot are ignored.
    """
    tallies = {
        participant_id: {"correct": 0, "incorrect": 0, "score": 0, "last": None}
        for participant_id in snapshot.participants
    }

    for pick in snapshot.picks:
        tally = tallies.get(pick.participant_id)
        if tally is None:
            continue

        submitted = ensure_utc(pick.submitted_at)
        if submitted is not None and (tally["last"] is None or submitted > tally["last"]):
            tally["last"] = submitted

        grade = _grade(pick, snapshot)
        if grade == CORRECT:
            tally["correct"] += 1
        elif grade == INCORRECT:
            tally["incorrect"] += 1
        tally["score"] += calculate_pick_score(grade)

    entries = [
        LeaderboardEntry(
            participant_id=participant_id,
            display_name=snapshot.participants[participant_id] or UNKNOWN_DISPLAY_NAME,
            score=tally["score"],
            correct_picks=tally["correct"],
            incorrect_picks=tally["incorrect"],
            total_graded_picks=tally["correct"] + tally["incorrect"],
            last_submission_at=tally["last"],
        )
        for participant_id, tally in tallies.items()
    ]

    entries.sort(
        key=lambda e: (_ranking_key(e, submission_tiebreak), e.participant_id)
    )

    ranked = []
    previous_key = None
    for position, entry in enumerate(entries, start=1):
        key = _ranking_key(entry, submission_tiebreak)
        rank = ranked[-1].rank if key == previous_key else position
        ranked.append(replace(entry, rank=rank))
        previous_key = key

    return ranked


def find_entry(entries, participant_id):
    """The given participant's entry, or None if they are not on the board"""
    if participant_id is None:
        return None
    return next((e for e in entries if e.participant_id == participant_id), None)


class LeaderboardService:
    """Loads leaderboard snapshots from the database and ranks them"""

    def __init__(self, submission_tiebreak=None):
        if submission_tiebreak is None:
            submission_tiebreak = (
                current_app.config.get("LEADERBOARD_SUBMISSION_TIEBREAK", True)
                if has_app_context()
                else True
            )
        self.submission_tiebreak = submission_tiebreak

    def resolve_scope(self, competition_id, league_id=None):
        """Validate the requested context and return (competition, league)"""
        competition = db.session.get(Competition, competition_id)
        if competition is None:
            raise NotFound(
                f"Competition {competition_id} not found", competition_id=competition_id
            )

        league = None
        if league_id is not None:
            league = db.session.get(League, league_id)
            if league is None:
                raise InvalidScope(f"League {league_id} not found", league_id=league_id)
            if league.competition_id != competition.id:
                raise InvalidScope(
                    "League does not belong to this competition",
                    league_id=league_id,
                    competition_id=competition_id,
                )

        return competition, league

    def build_snapshot(self, competition, league=None):
        """Read participants, picks and outcomes for one context"""
        league_id = league.id if league else None

        pick_rows = (
            db.session.query(
                UserPick.user_id,
                UserPick.pick,
                UserPick.game_id,
                UserPick.prop_prediction_id,
                UserPick.updated_at,
            )
            .filter(
                UserPick.competition_id == competition.id,
                UserPick.league_id.is_(None)
                if league_id is None
                else UserPick.league_id == league_id,
            )
            .all()
        )
        picks = [
            PickRecord(
                participant_id=row.user_id,
                pick=row.pick,
                game_id=row.game_id,
                prop_prediction_id=row.prop_prediction_id,
                submitted_at=ensure_utc(row.updated_at),
            )
            for row in pick_rows
        ]

        if league is not None:
            participant_ids = league.get_member_ids()
        else:
            participant_ids = {pick.participant_id for pick in picks}

        participants = {}
        if participant_ids:
            profiles = (
                db.session.query(Profile.id, Profile.username)
                .filter(Profile.id.in_(participant_ids))
                .all()
            )
            participants = {row.id: row.username for row in profiles}
            for participant_id in participant_ids:
                participants.setdefault(participant_id, UNKNOWN_DISPLAY_NAME)

        games = {
            row.id: GameOutcome(
                game_id=row.id,
                winning_team_id=row.winning_team_id,
                is_draw=bool(row.is_draw),
            )
            for row in db.session.query(
                Game.id, Game.winning_team_id, Game.is_draw
            ).filter(Game.competition_id == competition.id)
        }
        props = {
            row.id: PropOutcome(prop_prediction_id=row.id, correct_answer=row.correct_answer)
            for row in db.session.query(
                PropPrediction.id, PropPrediction.correct_answer
            ).filter(PropPrediction.competition_id == competition.id)
        }

        return LeaderboardSnapshot(
            participants=participants, picks=picks, games=games, props=props
        )

    def get_leaderboard(self, competition_id, league_id=None, participant_id=None):
        """
        Ranked leaderboard for a competition, optionally scoped to a league.

        Args:
            competition_id: Competition to rank
            league_id: Optional league; restricts participants to its members
                and picks to those made in the league
            participant_id: Optional caller whose own entry is returned too

        Raises:
            NotFound: competition does not exist
            InvalidScope: league does not exist or belongs to another competition
        """
        competition, league = self.resolve_scope(competition_id, league_id)
        snapshot = self.build_snapshot(competition, league)
        entries = compute_leaderboard(snapshot, self.submission_tiebreak)

        logger.debug(
            f"Leaderboard computed for competition {competition.id} "
            f"(league={league.id if league else None}): {len(entries)} entries"
        )

        return Leaderboard(
            competition=competition,
            league=league,
            entries=entries,
            current_entry=find_entry(entries, participant_id),
        )

    def get_league_leaderboard(self, league_id, participant_id=None):
        """Leaderboard for a league, taking the competition from the league itself"""
        league = db.session.get(League, league_id)
        if league is None:
            raise InvalidScope(f"League {league_id} not found", league_id=league_id)
        return self.get_leaderboard(
            league.competition_id, league_id=league.id, participant_id=participant_id
        )
