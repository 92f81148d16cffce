from playpredix import db  # noqa: F401 - imported for model imports

from .admin_action import AdminAction
from .competition import Competition
from .game import Game
from .league import League
from .league_member import LeagueMember
from .profile import Profile
from .prop_prediction import PropPrediction
from .team import Team
from .user_pick import UserPick

__all__ = [
    "Profile",
    "Competition",
    "Team",
    "Game",
    "PropPrediction",
    "UserPick",
    "League",
    "LeagueMember",
    "AdminAction",
]
