from datetime import datetime, timezone

from flask_login import UserMixin

from playpredix import db
from playpredix.utils.timezone_utils import isoformat_utc


class Profile(UserMixin, db.Model):
    """A participant. Identity is issued by the external identity provider."""

    __tablename__ = "profiles"

    id = db.Column(db.String(64), primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)

    # Site-wide admin privileges (competition/team/game/result management)
    is_admin = db.Column(db.Boolean, default=False, nullable=False)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    picks = db.relationship(
        "UserPick", backref="user", lazy="dynamic", cascade="all, delete-orphan"
    )
    league_memberships = db.relationship(
        "LeagueMember", backref="user", lazy="dynamic", cascade="all, delete-orphan"
    )
    administered_leagues = db.relationship("League", backref="admin", lazy="dynamic")

    def __repr__(self):
        return f"<Profile {self.username}>"

    @property
    def display_name(self):
        return self.username or "Unknown User"

    @staticmethod
    def get_or_create(profile_id, username):
        """Fetch a profile by id, creating it on first sight"""
        profile = db.session.get(Profile, profile_id)
        if profile is None:
            profile = Profile(id=profile_id, username=username)
            db.session.add(profile)
        return profile

    def to_dict(self):
        """Convert profile to dictionary for API responses"""
        return {
            "id": self.id,
            "username": self.username,
            "is_admin": self.is_admin,
            "created_at": isoformat_utc(self.created_at),
        }
