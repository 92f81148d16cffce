from datetime import datetime, timezone

from playpredix import db
from playpredix.utils.timezone_utils import isoformat_utc


class AdminAction(db.Model):
    """Audit trail of administrative mutations"""

    __tablename__ = "admin_actions"

    id = db.Column(db.Integer, primary_key=True)

    # Action details
    admin_user_id = db.Column(
        db.String(64), db.ForeignKey("profiles.id"), nullable=True
    )  # Null when run from the management CLI
    action_type = db.Column(
        db.String(50), nullable=False
    )  # 'create_game', 'grade_game', 'delete_team', etc.
    action_description = db.Column(db.String(500), nullable=False)

    # Related object ids for context. Plain integers, not foreign keys: the
    # record must outlive deletion of the object it describes.
    competition_id = db.Column(db.Integer, nullable=True)
    team_id = db.Column(db.Integer, nullable=True)
    game_id = db.Column(db.Integer, nullable=True)
    prop_prediction_id = db.Column(db.Integer, nullable=True)

    # Additional context data (JSON)
    action_metadata = db.Column(db.JSON, nullable=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    admin_user = db.relationship("Profile", backref="admin_actions_performed")

    # Indexes
    __table_args__ = (
        db.Index("idx_admin_action_admin", "admin_user_id"),
        db.Index("idx_admin_action_type", "action_type"),
        db.Index("idx_admin_action_competition", "competition_id"),
        db.Index("idx_admin_action_created", "created_at"),
    )

    def __repr__(self):
        return f'<AdminAction {self.action_type} by {self.admin_user.username if self.admin_user else "cli"}>'

    @staticmethod
    def log_action(
        admin_user_id,
        action_type,
        description,
        competition_id=None,
        team_id=None,
        game_id=None,
        prop_prediction_id=None,
        action_metadata=None,
    ):
        """Log an admin action"""
        action = AdminAction(
            admin_user_id=admin_user_id,
            action_type=action_type,
            action_description=description,
            competition_id=competition_id,
            team_id=team_id,
            game_id=game_id,
            prop_prediction_id=prop_prediction_id,
            action_metadata=action_metadata or {},
        )

        db.session.add(action)
        return action

    @staticmethod
    def log_game_result(admin_user_id, game, previous):
        """Convenience method for logging a game grading or re-grading"""
        if game.is_draw:
            outcome = "draw"
        else:
            outcome = game.winning_team.name if game.winning_team else str(game.winning_team_id)

        action_type = "regrade_game" if previous["is_graded"] else "grade_game"
        description = f"Set result of {game.team_a.name} vs {game.team_b.name}: {outcome}"

        return AdminAction.log_action(
            admin_user_id=admin_user_id,
            action_type=action_type,
            description=description,
            competition_id=game.competition_id,
            game_id=game.id,
            action_metadata={
                "previous_winning_team_id": previous["winning_team_id"],
                "previous_is_draw": previous["is_draw"],
                "winning_team_id": game.winning_team_id,
                "is_draw": game.is_draw,
            },
        )

    @staticmethod
    def log_prop_answer(admin_user_id, prop, previous_answer):
        """Convenience method for logging a prop grading or re-grading"""
        action_type = "regrade_prop" if previous_answer is not None else "grade_prop"

        return AdminAction.log_action(
            admin_user_id=admin_user_id,
            action_type=action_type,
            description=f"Answered {prop.question!r}: {prop.correct_answer}",
            competition_id=prop.competition_id,
            prop_prediction_id=prop.id,
            action_metadata={
                "previous_answer": previous_answer,
                "correct_answer": prop.correct_answer,
            },
        )

    @staticmethod
    def get_recent(limit=50, competition_id=None):
        query = AdminAction.query
        if competition_id is not None:
            query = query.filter_by(competition_id=competition_id)
        return query.order_by(AdminAction.created_at.desc(), AdminAction.id.desc()).limit(limit).all()

    def to_dict(self):
        """Convert action to dictionary for API responses"""
        return {
            "id": self.id,
            "admin_user": self.admin_user.username if self.admin_user else None,
            "action_type": self.action_type,
            "action_description": self.action_description,
            "competition_id": self.competition_id,
            "team_id": self.team_id,
            "game_id": self.game_id,
            "prop_prediction_id": self.prop_prediction_id,
            "action_metadata": self.action_metadata,
            "created_at": isoformat_utc(self.created_at),
        }
