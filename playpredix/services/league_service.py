"""
Private league management: create, join by invite code, leave, delete
"""

import logging

from playpredix import db
from playpredix.errors import NotFound, ValidationError
from playpredix.models import Competition, League, LeagueMember
from playpredix.models.league import INVITE_CODE_PATTERN

logger = logging.getLogger(__name__)

LEAGUE_NAME_MIN_LENGTH = 2
LEAGUE_NAME_MAX_LENGTH = 50


def validate_league_name(name):
    """Return an error message for a bad league name, or None"""
    trimmed = (name or "").strip()
    if not trimmed:
        return "League name is required"
    if len(trimmed) < LEAGUE_NAME_MIN_LENGTH:
        return "League name must be at least 2 characters"
    if len(trimmed) > LEAGUE_NAME_MAX_LENGTH:
        return "League name must be less than 50 characters"
    return None


def validate_invite_code(code):
    """Return an error message for a malformed invite code, or None"""
    trimmed = (code or "").strip()
    if not trimmed:
        return "Invite code is required"
    if not INVITE_CODE_PATTERN.match(trimmed):
        return "Invalid invite code format"
    return None


def create_league(name, competition_id, admin_id):
    """Create a league; the creator becomes its admin and first member"""
    error = validate_league_name(name)
    if error:
        raise ValidationError(error)
    if not competition_id:
        raise ValidationError("Please select a competition")

    competition = db.session.get(Competition, competition_id)
    if competition is None:
        raise NotFound(f"Competition {competition_id} not found", competition_id=competition_id)

    league = League(name=name.strip(), admin_id=admin_id, competition_id=competition.id)
    db.session.add(league)
    db.session.flush()

    db.session.add(LeagueMember(league_id=league.id, user_id=admin_id))
    logger.info(f"League created: {league.name} ({league.id}) by {admin_id}")
    return league


def join_league(invite_code, user_id):
    """
    Join a league by invite code.

    Returns:
        (success, message, league) - a bad or unknown code is reported in the
        message rather than raised, matching how the join form reports it.
    """
    error = validate_invite_code(invite_code)
    if error:
        return False, error, None

    league = League.get_by_invite_code(invite_code)
    if league is None:
        return False, "No league found with that invite code", None

    success, message = league.add_member(user_id)
    if success:
        logger.info(f"{user_id} joined league {league.id}")
    return success, message, league


def leave_league(league_id, user_id):
    league = get_league(league_id)
    return league.remove_member(user_id)


def remove_member(league_id, admin_id, user_id):
    """The league admin removes another participant from the league"""
    league = get_league(league_id)
    if not league.is_user_admin(admin_id):
        return False, "Only the league admin can remove members"
    if user_id == admin_id:
        return False, "You cannot remove yourself from your own league"

    success, message = league.remove_member(user_id)
    if success:
        logger.info(f"{user_id} removed from league {league_id} by {admin_id}")
        return True, "Member removed"
    return False, message


def delete_league(league_id, user_id):
    """Only the league admin may delete a league"""
    league = get_league(league_id)
    if not league.is_user_admin(user_id):
        return False, "Only the league admin can delete this league"

    db.session.delete(league)
    logger.info(f"League deleted: {league_id} by {user_id}")
    return True, "League deleted"


def get_league(league_id):
    league = db.session.get(League, league_id)
    if league is None:
        raise NotFound(f"League {league_id} not found", league_id=league_id)
    return league


def list_leagues_for_user(user_id):
    """Leagues the participant belongs to, newest first"""
    return (
        League.query.outerjoin(LeagueMember, LeagueMember.league_id == League.id)
        .filter(db.or_(LeagueMember.user_id == user_id, League.admin_id == user_id))
        .distinct()
        .order_by(League.created_at.desc())
        .all()
    )
