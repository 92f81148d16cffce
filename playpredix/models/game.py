from datetime import datetime, timezone

from playpredix import db
from playpredix.errors import ValidationError
from playpredix.utils.scoring import DRAW_PICK, is_game_graded
from playpredix.utils.timezone_utils import format_lock_time, is_past, isoformat_utc


class Game(db.Model):
    __tablename__ = "games"

    id = db.Column(db.Integer, primary_key=True)

    # Game identification
    competition_id = db.Column(
        db.Integer, db.ForeignKey("competitions.id"), nullable=False
    )
    stage = db.Column(db.String(50))  # e.g. "Group A", "Quarter-final"

    # Teams
    team_a_id = db.Column(db.Integer, db.ForeignKey("teams.id"), nullable=False)
    team_b_id = db.Column(db.Integer, db.ForeignKey("teams.id"), nullable=False)

    # Scheduled start; picks lock at this moment
    game_date = db.Column(db.DateTime, nullable=False)

    # Outcome (set by an administrator)
    winning_team_id = db.Column(db.Integer, db.ForeignKey("teams.id"), nullable=True)
    is_draw = db.Column(db.Boolean, default=False, nullable=False)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    picks = db.relationship(
        "UserPick", backref="game", lazy="dynamic", cascade="all, delete-orphan"
    )
    winning_team = db.relationship("Team", foreign_keys=[winning_team_id])

    # Indexes
    __table_args__ = (
        db.Index("idx_game_competition", "competition_id"),
        db.Index("idx_game_date", "game_date"),
        db.CheckConstraint("team_a_id != team_b_id", name="different_teams"),
        db.CheckConstraint(
            "NOT (is_draw AND winning_team_id IS NOT NULL)",
            name="winner_or_draw",
        ),
    )

    def __repr__(self):
        return f'<Game {self.team_a.name if self.team_a else "TBD"} vs {self.team_b.name if self.team_b else "TBD"}>'

    @property
    def locks_at(self):
        return self.game_date

    @property
    def is_graded(self):
        """A game is graded once a winner is set or it is declared a draw"""
        return is_game_graded(self)

    @property
    def team_ids(self):
        return (self.team_a_id, self.team_b_id)

    @property
    def status(self):
        """Get game status as string"""
        if self.is_graded:
            return "graded"
        if self.is_locked():
            return "locked"
        return "open"

    def is_locked(self, now=None):
        """Locked once the scheduled start has been reached"""
        return is_past(self.game_date, now)

    def valid_pick_values(self):
        """Pick strings a participant may submit for this game"""
        values = [str(self.team_a_id), str(self.team_b_id)]
        if self.competition and self.competition.allow_draws:
            values.append(DRAW_PICK)
        return values

    def set_result(self, winning_team_id=None, is_draw=False):
        """Grade the game. Setting one outcome clears the other; re-grading overwrites."""
        if is_draw and winning_team_id is not None:
            raise ValidationError("A game cannot have both a winner and a draw")

        if not is_draw and winning_team_id is None:
            raise ValidationError("Select a winning team or mark the game as a draw")

        if is_draw:
            if not self.competition.allow_draws:
                raise ValidationError(
                    f"{self.competition.name} does not allow draws",
                    game_id=self.id,
                )
            self.is_draw = True
            self.winning_team_id = None
        else:
            winning_team_id = int(winning_team_id)
            if winning_team_id not in self.team_ids:
                raise ValidationError(
                    "Winning team is not playing in this game",
                    game_id=self.id,
                    team_id=winning_team_id,
                )
            self.is_draw = False
            self.winning_team_id = winning_team_id

    def clear_result(self):
        """Return the game to ungraded"""
        self.winning_team_id = None
        self.is_draw = False

    def to_dict(self, now=None):
        """Convert game to dictionary for API responses"""
        return {
            "id": self.id,
            "type": "game",
            "competition_id": self.competition_id,
            "stage": self.stage,
            "game_date": isoformat_utc(self.game_date),
            "game_date_local": format_lock_time(self.game_date),
            "team_a": self.team_a.to_dict() if self.team_a else None,
            "team_b": self.team_b.to_dict() if self.team_b else None,
            "winning_team_id": self.winning_team_id,
            "is_draw": self.is_draw,
            "is_graded": self.is_graded,
            "is_locked": self.is_locked(now),
            "status": self.status,
        }
