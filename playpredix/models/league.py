import re
import secrets
import string
import uuid
from datetime import datetime, timezone

from playpredix import db
from playpredix.utils.timezone_utils import isoformat_utc

INVITE_CODE_PREFIX = "LEAGUE-"
INVITE_CODE_PATTERN = re.compile(r"^LEAGUE-[A-Z0-9]{6}$", re.IGNORECASE)


class League(db.Model):
    """A private league scoped to one competition"""

    __tablename__ = "leagues"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = db.Column(db.String(50), nullable=False)

    admin_id = db.Column(db.String(64), db.ForeignKey("profiles.id"), nullable=False)
    competition_id = db.Column(
        db.Integer, db.ForeignKey("competitions.id"), nullable=False
    )

    # Code for easy joining, e.g. LEAGUE-X7K2P9
    invite_code = db.Column(db.String(13), unique=True, nullable=False, index=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    members = db.relationship(
        "LeagueMember", backref="league", lazy="dynamic", cascade="all, delete-orphan"
    )
    picks = db.relationship(
        "UserPick", backref="league", lazy="dynamic", cascade="all, delete-orphan"
    )

    __table_args__ = (
        db.Index("idx_league_admin", "admin_id"),
        db.Index("idx_league_competition", "competition_id"),
    )

    def __repr__(self):
        return f"<League {self.name}>"

    def __init__(self, **kwargs):
        super(League, self).__init__(**kwargs)
        if not self.id:
            self.id = str(uuid.uuid4())
        if not self.invite_code:
            self.invite_code = self.generate_invite_code()

    @staticmethod
    def generate_invite_code():
        """Generate a unique LEAGUE-XXXXXX invite code"""
        alphabet = string.ascii_uppercase + string.digits
        while True:
            code = INVITE_CODE_PREFIX + "".join(
                secrets.choice(alphabet) for _ in range(6)
            )
            if not League.query.filter_by(invite_code=code).first():
                return code

    @staticmethod
    def normalize_invite_code(code):
        return (code or "").strip().upper()

    @staticmethod
    def get_by_invite_code(code):
        return League.query.filter_by(
            invite_code=League.normalize_invite_code(code)
        ).first()

    def get_member_ids(self):
        """Member participant ids; the admin always counts as a member"""
        member_ids = {member.user_id for member in self.members.all()}
        member_ids.add(self.admin_id)
        return member_ids

    def get_member_count(self):
        return len(self.get_member_ids())

    def is_user_member(self, user_id):
        """Check if participant belongs to this league"""
        if user_id == self.admin_id:
            return True
        return self.members.filter_by(user_id=user_id).first() is not None

    def is_user_admin(self, user_id):
        return user_id == self.admin_id

    def add_member(self, user_id):
        """Add a participant to the league"""
        from .league_member import LeagueMember

        if self.members.filter_by(user_id=user_id).first():
            return False, "You are already a member of this league"

        membership = LeagueMember(user_id=user_id, league_id=self.id)
        db.session.add(membership)
        return True, f"Joined {self.name}"

    def remove_member(self, user_id):
        """Remove a participant from the league"""
        if user_id == self.admin_id:
            return False, "The league admin cannot leave; delete the league instead"

        member = self.members.filter_by(user_id=user_id).first()
        if member:
            db.session.delete(member)
            return True, "Left league"
        return False, "You are not a member of this league"

    def to_dict(self, include_members=False):
        """Convert league to dictionary for API responses"""
        data = {
            "id": self.id,
            "name": self.name,
            "admin_id": self.admin_id,
            "competition_id": self.competition_id,
            "competition_name": self.competition.name if self.competition else None,
            "invite_code": self.invite_code,
            "member_count": self.get_member_count(),
            "created_at": isoformat_utc(self.created_at),
        }

        if include_members:
            data["members"] = [member.to_dict() for member in self.members.all()]

        return data
