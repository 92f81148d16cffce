from datetime import datetime, timezone

from playpredix import db
from playpredix.errors import ValidationError
from playpredix.utils.scoring import is_prop_graded
from playpredix.utils.timezone_utils import format_lock_time, is_past, isoformat_utc


class PropPrediction(db.Model):
    """A special-event question, e.g. "Will the final go to penalties?" """

    __tablename__ = "prop_predictions"

    id = db.Column(db.Integer, primary_key=True)
    competition_id = db.Column(
        db.Integer, db.ForeignKey("competitions.id"), nullable=False
    )
    question = db.Column(db.String(500), nullable=False)
    lock_date = db.Column(db.DateTime, nullable=False)

    # Free string; observed answers are "Yes"/"No"
    correct_answer = db.Column(db.String(200), nullable=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    picks = db.relationship(
        "UserPick",
        backref="prop_prediction",
        lazy="dynamic",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        db.Index("idx_prop_competition", "competition_id"),
        db.Index("idx_prop_lock_date", "lock_date"),
    )

    def __repr__(self):
        return f"<PropPrediction {self.question[:40]!r}>"

    @property
    def locks_at(self):
        return self.lock_date

    @property
    def is_graded(self):
        return is_prop_graded(self)

    def is_locked(self, now=None):
        """Locked once the lock date has been reached"""
        return is_past(self.lock_date, now)

    def set_answer(self, answer):
        """Grade the question. Re-grading overwrites the previous answer."""
        if answer is None or not str(answer).strip():
            raise ValidationError("Correct answer is required", prop_id=self.id)
        self.correct_answer = str(answer).strip()

    def clear_answer(self):
        """Return the question to ungraded"""
        self.correct_answer = None

    def to_dict(self, now=None):
        """Convert prop prediction to dictionary for API responses"""
        return {
            "id": self.id,
            "type": "prop",
            "competition_id": self.competition_id,
            "question": self.question,
            "lock_date": isoformat_utc(self.lock_date),
            "lock_date_local": format_lock_time(self.lock_date),
            "correct_answer": self.correct_answer,
            "is_graded": self.is_graded,
            "is_locked": self.is_locked(now),
        }
