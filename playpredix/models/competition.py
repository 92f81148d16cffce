from datetime import datetime, timezone

from playpredix import db
from playpredix.utils.timezone_utils import isoformat_utc


class Competition(db.Model):
    __tablename__ = "competitions"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text)

    # Informational default lock; games and props carry their own
    lock_date = db.Column(db.DateTime, nullable=False)

    # Whether a game may be graded as a draw
    allow_draws = db.Column(db.Boolean, default=False, nullable=False)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    games = db.relationship(
        "Game", backref="competition", lazy="dynamic", cascade="all, delete-orphan"
    )
    prop_predictions = db.relationship(
        "PropPrediction",
        backref="competition",
        lazy="dynamic",
        cascade="all, delete-orphan",
    )
    picks = db.relationship(
        "UserPick", backref="competition", lazy="dynamic", cascade="all, delete-orphan"
    )
    leagues = db.relationship(
        "League", backref="competition", lazy="dynamic", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Competition {self.name}>"

    @staticmethod
    def get_all():
        """Get all competitions, most recently created first"""
        return Competition.query.order_by(Competition.created_at.desc()).all()

    def to_dict(self, include_events=False):
        """Convert competition to dictionary for API responses"""
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "lock_date": isoformat_utc(self.lock_date),
            "allow_draws": self.allow_draws,
            "created_at": isoformat_utc(self.created_at),
        }

        if include_events:
            data["games"] = [game.to_dict() for game in self.games.all()]
            data["prop_predictions"] = [
                prop.to_dict() for prop in self.prop_predictions.all()
            ]

        return data
