from datetime import datetime, timezone

from playpredix import db
from playpredix.utils.timezone_utils import isoformat_utc


class LeagueMember(db.Model):
    __tablename__ = "league_members"

    id = db.Column(db.Integer, primary_key=True)
    league_id = db.Column(db.String(36), db.ForeignKey("leagues.id"), nullable=False)
    user_id = db.Column(db.String(64), db.ForeignKey("profiles.id"), nullable=False)

    # Timestamps
    joined_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    # Constraints
    __table_args__ = (
        db.UniqueConstraint("user_id", "league_id", name="unique_user_league"),
        db.Index("idx_league_members_league", "league_id"),
        db.Index("idx_user_memberships", "user_id"),
    )

    def __repr__(self):
        return f"<LeagueMember user_id={self.user_id} league_id={self.league_id}>"

    def to_dict(self):
        """Convert membership to dictionary for API responses"""
        return {
            "user_id": self.user_id,
            "league_id": self.league_id,
            "username": self.user.display_name if self.user else None,
            "is_admin": self.league.is_user_admin(self.user_id) if self.league else False,
            "joined_at": isoformat_utc(self.joined_at),
        }
