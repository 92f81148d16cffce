from datetime import datetime, timezone

from playpredix import db
from playpredix.utils.timezone_utils import isoformat_utc


class UserPick(db.Model):
    __tablename__ = "user_picks"

    id = db.Column(db.Integer, primary_key=True)

    # Pick identification
    user_id = db.Column(db.String(64), db.ForeignKey("profiles.id"), nullable=False)
    competition_id = db.Column(
        db.Integer, db.ForeignKey("competitions.id"), nullable=False
    )
    league_id = db.Column(
        db.String(36), db.ForeignKey("leagues.id"), nullable=True
    )  # Null for public picks

    # Exactly one target
    game_id = db.Column(db.Integer, db.ForeignKey("games.id"), nullable=True)
    prop_prediction_id = db.Column(
        db.Integer, db.ForeignKey("prop_predictions.id"), nullable=True
    )

    # Team id as a string, "draw", or an answer string
    pick = db.Column(db.String(200), nullable=False)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Constraints and indexes
    # One pick per (user, target) in the public context and per (user, target,
    # league) in a league context. NULL league ids never collide in a plain
    # unique constraint, so the two contexts get separate partial indexes.
    __table_args__ = (
        db.CheckConstraint(
            "(game_id IS NULL) != (prop_prediction_id IS NULL)",
            name="exactly_one_target",
        ),
        db.Index(
            "uq_public_game_pick",
            "user_id",
            "game_id",
            unique=True,
            sqlite_where=db.text("league_id IS NULL AND game_id IS NOT NULL"),
            postgresql_where=db.text("league_id IS NULL AND game_id IS NOT NULL"),
        ),
        db.Index(
            "uq_league_game_pick",
            "user_id",
            "game_id",
            "league_id",
            unique=True,
            sqlite_where=db.text("league_id IS NOT NULL AND game_id IS NOT NULL"),
            postgresql_where=db.text("league_id IS NOT NULL AND game_id IS NOT NULL"),
        ),
        db.Index(
            "uq_public_prop_pick",
            "user_id",
            "prop_prediction_id",
            unique=True,
            sqlite_where=db.text(
                "league_id IS NULL AND prop_prediction_id IS NOT NULL"
            ),
            postgresql_where=db.text(
                "league_id IS NULL AND prop_prediction_id IS NOT NULL"
            ),
        ),
        db.Index(
            "uq_league_prop_pick",
            "user_id",
            "prop_prediction_id",
            "league_id",
            unique=True,
            sqlite_where=db.text(
                "league_id IS NOT NULL AND prop_prediction_id IS NOT NULL"
            ),
            postgresql_where=db.text(
                "league_id IS NOT NULL AND prop_prediction_id IS NOT NULL"
            ),
        ),
        db.Index("idx_pick_competition_league", "competition_id", "league_id"),
        db.Index("idx_pick_user", "user_id"),
    )

    def __repr__(self):
        target = (
            f"game_id={self.game_id}"
            if self.game_id is not None
            else f"prop_prediction_id={self.prop_prediction_id}"
        )
        return f"<UserPick user_id={self.user_id} {target} pick={self.pick!r}>"

    @property
    def target(self):
        """The game or prop prediction this pick is for"""
        return self.game if self.game_id is not None else self.prop_prediction

    @staticmethod
    def find_existing(user_id, league_id=None, game_id=None, prop_prediction_id=None):
        """Look up a pick by its uniqueness key"""
        query = UserPick.query.filter_by(
            user_id=user_id,
            league_id=league_id,
            game_id=game_id,
            prop_prediction_id=prop_prediction_id,
        )
        return query.first()

    @staticmethod
    def get_for_context(competition_id, league_id=None, user_id=None):
        """All picks made in one context (public when league_id is None)"""
        query = UserPick.query.filter_by(
            competition_id=competition_id, league_id=league_id
        )
        if user_id is not None:
            query = query.filter_by(user_id=user_id)
        return query.order_by(UserPick.id).all()

    def to_dict(self):
        """Convert pick to dictionary for API responses"""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "competition_id": self.competition_id,
            "league_id": self.league_id,
            "game_id": self.game_id,
            "prop_prediction_id": self.prop_prediction_id,
            "pick": self.pick,
            "created_at": isoformat_utc(self.created_at),
            "updated_at": isoformat_utc(self.updated_at),
        }
