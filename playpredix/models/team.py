from datetime import datetime, timezone

from playpredix import db


class Team(db.Model):
    __tablename__ = "teams"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, index=True)

    # Visual elements
    logo_url = db.Column(db.String(500))

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    # Deleting a team deletes every game it plays in
    games_as_team_a = db.relationship(
        "Game",
        foreign_keys="Game.team_a_id",
        backref=db.backref("team_a", lazy="joined"),
        lazy="dynamic",
        cascade="all, delete",
    )
    games_as_team_b = db.relationship(
        "Game",
        foreign_keys="Game.team_b_id",
        backref=db.backref("team_b", lazy="joined"),
        lazy="dynamic",
        cascade="all, delete",
    )

    def __repr__(self):
        return f"<Team {self.name}>"

    def get_all_games(self):
        """Get all games this team plays in"""
        from .game import Game

        return (
            Game.query.filter(
                db.or_(Game.team_a_id == self.id, Game.team_b_id == self.id)
            )
            .order_by(Game.game_date)
            .all()
        )

    @staticmethod
    def get_all():
        """Get all teams ordered by name"""
        return Team.query.order_by(Team.name).all()

    def to_dict(self):
        """Convert team to dictionary for API responses"""
        return {
            "id": self.id,
            "name": self.name,
            "logo_url": self.logo_url,
        }
