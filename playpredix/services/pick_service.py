"""
Pick admission control

A game or prop prediction is Open until its lock time and Locked from that
moment on (inclusive). The state is never stored: it is derived by comparing
the submission time with the lock timestamp when the pick arrives. While Open
a pick is created or overwritten; once Locked it is rejected with PickLocked
and existing picks stay readable.
"""

import logging
from datetime import datetime, timezone

from playpredix import db
from playpredix.errors import InvalidScope, NotFound, PickLocked, ValidationError
from playpredix.forms.base import json_formdata
from playpredix.forms.picks import MakePickForm
from playpredix.models import Game, League, PropPrediction, UserPick

logger = logging.getLogger(__name__)


def _load_target(game_id, prop_prediction_id):
    if (game_id is None) == (prop_prediction_id is None):
        raise ValidationError("A pick needs exactly one of game_id or prop_prediction_id")

    if game_id is not None:
        game = db.session.get(Game, game_id)
        if game is None:
            raise NotFound(f"Game {game_id} not found", game_id=game_id)
        return game

    prop = db.session.get(PropPrediction, prop_prediction_id)
    if prop is None:
        raise NotFound(
            f"Prop prediction {prop_prediction_id} not found",
            prop_prediction_id=prop_prediction_id,
        )
    return prop


def _check_league_scope(league_id, user_id, competition_id):
    if league_id is None:
        return None

    league = db.session.get(League, league_id)
    if league is None:
        raise InvalidScope(f"League {league_id} not found", league_id=league_id)
    if league.competition_id != competition_id:
        raise InvalidScope(
            "League does not belong to this competition",
            league_id=league_id,
            competition_id=competition_id,
        )
    if not league.is_user_member(user_id):
        raise InvalidScope("You are not a member of this league", league_id=league_id)
    return league


def _normalize_pick_value(target, pick):
    value = "" if pick is None else str(pick).strip()
    if not value:
        raise ValidationError("A pick value is required")

    if isinstance(target, Game):
        allowed = target.valid_pick_values()
        if value not in allowed:
            raise ValidationError(
                "Pick must be one of the teams playing"
                + (" or a draw" if "draw" in allowed else ""),
                game_id=target.id,
                allowed=allowed,
            )
    return value


def submit_pick(
    user_id,
    pick,
    game_id=None,
    prop_prediction_id=None,
    league_id=None,
    now=None,
    competition_id=None,
):
    """
    Create or overwrite a participant's pick.

    Args:
        user_id: Participant making the pick
        pick: Team id (as string or int), "draw", or an answer string
        game_id / prop_prediction_id: Exactly one target
        league_id: League context, or None for the public context
        now: Submission time; defaults to the current UTC time
        competition_id: When given, the target must belong to this competition

    Returns:
        (UserPick, created) where created is False for an overwrite

    Raises:
        ValidationError, NotFound, PickLocked, InvalidScope
    """
    now = now or datetime.now(timezone.utc)
    target = _load_target(game_id, prop_prediction_id)

    if competition_id is not None and target.competition_id != competition_id:
        raise ValidationError(
            "Pick target belongs to a different competition",
            competition_id=competition_id,
        )

    # Point-in-time admission check; lock is inclusive of the lock instant
    if target.is_locked(now):
        raise PickLocked(
            "Picks are locked for this game"
            if isinstance(target, Game)
            else "Picks are locked for this question",
            game_id=game_id,
            prop_prediction_id=prop_prediction_id,
        )

    _check_league_scope(league_id, user_id, target.competition_id)
    value = _normalize_pick_value(target, pick)

    existing = UserPick.find_existing(
        user_id,
        league_id=league_id,
        game_id=game_id,
        prop_prediction_id=prop_prediction_id,
    )

    if existing:
        existing.pick = value
        existing.updated_at = now
        logger.debug(f"Pick updated: {existing!r}")
        return existing, False

    user_pick = UserPick(
        user_id=user_id,
        competition_id=target.competition_id,
        league_id=league_id,
        game_id=game_id,
        prop_prediction_id=prop_prediction_id,
        pick=value,
        created_at=now,
        updated_at=now,
    )
    db.session.add(user_pick)
    logger.debug(f"Pick created: {user_pick!r}")
    return user_pick, True


def submit_picks(user_id, competition_id, items, league_id=None, now=None):
    """
    Apply a batch of picks for one competition.

    Locked or invalid items are skipped and reported; the rest are saved.
    Each item is a dict with "pick" and one of "game_id"/"prop_prediction_id".

    Returns:
        {"saved": [UserPick, ...], "errors": [{"item": ..., "error": ..., "message": ...}]}
    """
    now = now or datetime.now(timezone.utc)
    saved = []
    errors = []

    for item in items:
        try:
            if not isinstance(item, dict):
                raise ValidationError("Each pick must be an object")

            # Same coercion and checks as a single pick
            form = MakePickForm(formdata=json_formdata(item)).validate_or_raise()
            user_pick, _ = submit_pick(
                user_id,
                form.pick.data,
                game_id=form.game_id.data,
                prop_prediction_id=form.prop_prediction_id.data,
                league_id=league_id,
                now=now,
                competition_id=competition_id,
            )
            saved.append(user_pick)
        except (ValidationError, NotFound, PickLocked, InvalidScope) as e:
            errors.append({"item": item, "error": e.code, "message": e.message})

    logger.info(
        f"Batch pick submission for {user_id} in competition {competition_id}: "
        f"{len(saved)} saved, {len(errors)} rejected"
    )
    return {"saved": saved, "errors": errors}


def get_user_picks(user_id, competition_id, league_id=None):
    """A participant's picks in one context. Locked picks remain readable."""
    return UserPick.get_for_context(competition_id, league_id=league_id, user_id=user_id)
