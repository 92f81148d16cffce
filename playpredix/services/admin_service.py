"""
Administrative mutations for PlayPredix

Competitions, teams, games and prop predictions are created, graded and
deleted here. Every mutation is recorded in the admin audit log. Callers
commit the session; nothing here commits on its own.

Deleting a competition removes its games, props, picks and leagues.
Deleting a team removes every game it plays in, along with those games' picks.
"""

import logging

from playpredix import db
from playpredix.errors import NotFound, ValidationError
from playpredix.models import AdminAction, Competition, Game, PropPrediction, Team
from playpredix.utils.cache_utils import invalidate_model_cache
from playpredix.utils.timezone_utils import naive_utc

logger = logging.getLogger(__name__)


def _require(value, message):
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(message)
    return value.strip() if isinstance(value, str) else value


def _get_or_404(model, object_id, label):
    obj = db.session.get(model, object_id) if object_id is not None else None
    if obj is None:
        raise NotFound(f"{label} {object_id} not found")
    return obj


def get_competition(competition_id):
    return _get_or_404(Competition, competition_id, "Competition")


# Competitions


def create_competition(name, lock_date, description=None, allow_draws=False, admin_id=None):
    name = _require(name, "Name and Lock Date are required.")
    lock_date = _require(lock_date, "Name and Lock Date are required.")

    competition = Competition(
        name=name,
        description=(description or "").strip() or None,
        lock_date=naive_utc(lock_date),
        allow_draws=bool(allow_draws),
    )
    db.session.add(competition)
    db.session.flush()

    AdminAction.log_action(
        admin_id,
        "create_competition",
        f"Created competition {competition.name}",
        competition_id=competition.id,
        action_metadata={"allow_draws": competition.allow_draws},
    )
    invalidate_model_cache("competition")
    logger.info(f"Competition created: {competition.name} (id={competition.id})")
    return competition


def update_competition(competition_id, admin_id=None, **changes):
    """Edit name, description, lock date or the draw setting"""
    competition = get_competition(competition_id)

    if "name" in changes:
        competition.name = _require(changes["name"], "Name is required.")
    if "description" in changes:
        competition.description = (changes["description"] or "").strip() or None
    if "lock_date" in changes:
        competition.lock_date = naive_utc(
            _require(changes["lock_date"], "Lock Date is required.")
        )
    if "allow_draws" in changes:
        allow_draws = bool(changes["allow_draws"])
        if not allow_draws and competition.games.filter_by(is_draw=True).count():
            raise ValidationError(
                "Games in this competition are already graded as draws",
                competition_id=competition.id,
            )
        competition.allow_draws = allow_draws

    AdminAction.log_action(
        admin_id,
        "update_competition",
        f"Updated competition {competition.name}",
        competition_id=competition.id,
        action_metadata={key: str(value) for key, value in changes.items()},
    )
    invalidate_model_cache("competition")
    return competition


def delete_competition(competition_id, admin_id=None):
    competition = get_competition(competition_id)
    name = competition.name

    db.session.delete(competition)
    AdminAction.log_action(
        admin_id,
        "delete_competition",
        f"Deleted competition {name} with its games, questions, picks and leagues",
        competition_id=competition_id,
    )
    invalidate_model_cache("competition")
    logger.info(f"Competition deleted: {name} (id={competition_id})")


# Teams


def create_team(name, logo_url=None, admin_id=None):
    name = _require(name, "Team name is required.")

    team = Team(name=name, logo_url=(logo_url or "").strip() or None)
    db.session.add(team)
    db.session.flush()

    AdminAction.log_action(
        admin_id, "create_team", f"Created team {team.name}", team_id=team.id
    )
    invalidate_model_cache("team")
    return team


def delete_team(team_id, admin_id=None):
    team = _get_or_404(Team, team_id, "Team")
    name = team.name
    game_count = len(team.get_all_games())

    db.session.delete(team)
    AdminAction.log_action(
        admin_id,
        "delete_team",
        f"Deleted team {name} and {game_count} game(s)",
        team_id=team_id,
        action_metadata={"games_deleted": game_count},
    )
    invalidate_model_cache("team")
    logger.info(f"Team deleted: {name} (id={team_id}), {game_count} game(s) removed")


# Games


def create_game(competition_id, team_a_id, team_b_id, game_date, stage=None, admin_id=None):
    message = "All fields except Stage are required."
    _require(competition_id, message)
    _require(team_a_id, message)
    _require(team_b_id, message)
    _require(game_date, message)

    competition = get_competition(competition_id)
    team_a = _get_or_404(Team, team_a_id, "Team")
    team_b = _get_or_404(Team, team_b_id, "Team")

    if team_a.id == team_b.id:
        raise ValidationError("A team cannot play itself.", team_id=team_a.id)

    game = Game(
        competition_id=competition.id,
        team_a_id=team_a.id,
        team_b_id=team_b.id,
        game_date=naive_utc(game_date),
        stage=(stage or "").strip() or None,
    )
    db.session.add(game)
    db.session.flush()

    AdminAction.log_action(
        admin_id,
        "create_game",
        f"Created game {team_a.name} vs {team_b.name}",
        competition_id=competition.id,
        game_id=game.id,
    )
    return game


def delete_game(game_id, admin_id=None):
    game = _get_or_404(Game, game_id, "Game")
    competition_id = game.competition_id

    db.session.delete(game)
    AdminAction.log_action(
        admin_id,
        "delete_game",
        f"Deleted game {game_id}",
        competition_id=competition_id,
        game_id=game_id,
    )


def grade_game(game_id, winning_team_id=None, is_draw=False, admin_id=None):
    """Set or overwrite a game's result"""
    game = _get_or_404(Game, game_id, "Game")
    previous = {
        "is_graded": game.is_graded,
        "winning_team_id": game.winning_team_id,
        "is_draw": game.is_draw,
    }

    game.set_result(winning_team_id=winning_team_id, is_draw=is_draw)
    AdminAction.log_game_result(admin_id, game, previous)

    logger.info(
        f"Game {game.id} graded: winner={game.winning_team_id} draw={game.is_draw}"
    )
    return game


def clear_game_result(game_id, admin_id=None):
    game = _get_or_404(Game, game_id, "Game")
    game.clear_result()
    AdminAction.log_action(
        admin_id,
        "clear_game_result",
        f"Cleared result of game {game.id}",
        competition_id=game.competition_id,
        game_id=game.id,
    )
    return game


def list_pending_games(competition_id=None):
    """Games without a result, earliest first"""
    query = Game.query.filter(Game.winning_team_id.is_(None), Game.is_draw.is_(False))
    if competition_id is not None:
        query = query.filter(Game.competition_id == competition_id)
    return query.order_by(Game.game_date).all()


# Prop predictions


def create_prop_prediction(competition_id, question, lock_date, admin_id=None):
    message = "All fields are required."
    _require(competition_id, message)
    question = _require(question, message)
    _require(lock_date, message)

    competition = get_competition(competition_id)
    prop = PropPrediction(
        competition_id=competition.id,
        question=question,
        lock_date=naive_utc(lock_date),
    )
    db.session.add(prop)
    db.session.flush()

    AdminAction.log_action(
        admin_id,
        "create_prop",
        f"Created question {prop.question!r}",
        competition_id=competition.id,
        prop_prediction_id=prop.id,
    )
    return prop


def delete_prop_prediction(prop_prediction_id, admin_id=None):
    prop = _get_or_404(PropPrediction, prop_prediction_id, "Prop prediction")
    competition_id = prop.competition_id

    db.session.delete(prop)
    AdminAction.log_action(
        admin_id,
        "delete_prop",
        f"Deleted question {prop_prediction_id}",
        competition_id=competition_id,
        prop_prediction_id=prop_prediction_id,
    )


def grade_prop(prop_prediction_id, correct_answer, admin_id=None):
    """Set or overwrite a prop prediction's correct answer"""
    prop = _get_or_404(PropPrediction, prop_prediction_id, "Prop prediction")
    previous_answer = prop.correct_answer

    prop.set_answer(correct_answer)
    AdminAction.log_prop_answer(admin_id, prop, previous_answer)

    logger.info(f"Prop {prop.id} graded: {prop.correct_answer!r}")
    return prop


def clear_prop_answer(prop_prediction_id, admin_id=None):
    prop = _get_or_404(PropPrediction, prop_prediction_id, "Prop prediction")
    prop.clear_answer()
    AdminAction.log_action(
        admin_id,
        "clear_prop_answer",
        f"Cleared answer of question {prop.id}",
        competition_id=prop.competition_id,
        prop_prediction_id=prop.id,
    )
    return prop


def list_pending_props(competition_id=None):
    """Prop predictions without an answer, earliest lock first"""
    query = PropPrediction.query.filter(PropPrediction.correct_answer.is_(None))
    if competition_id is not None:
        query = query.filter(PropPrediction.competition_id == competition_id)
    return query.order_by(PropPrediction.lock_date).all()
