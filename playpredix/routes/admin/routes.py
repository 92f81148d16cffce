from functools import wraps

from flask import abort, jsonify, request
from flask_login import current_user, login_required

from playpredix import db
from playpredix.forms.admin import (
    CompetitionForm,
    GameForm,
    GameResultForm,
    PropAnswerForm,
    PropPredictionForm,
    TeamForm,
)
from playpredix.models import AdminAction
from playpredix.routes.admin import bp
from playpredix.services import admin_service
from playpredix.socketio_handlers import broadcast_results_updated


def admin_required(f):
    """Only administrators may use the admin endpoints"""

    @wraps(f)
    @login_required
    def decorated_function(*args, **kwargs):
        if not current_user.is_admin:
            abort(403)
        return f(*args, **kwargs)

    return decorated_function


# Competitions


@bp.route("/competitions", methods=["POST"])
@admin_required
def create_competition():
    form = CompetitionForm.from_request().validate_or_raise()
    competition = admin_service.create_competition(
        form.name.data,
        form.lock_date.data,
        description=form.description.data,
        allow_draws=form.allow_draws.data,
        admin_id=current_user.id,
    )
    db.session.commit()
    return jsonify(competition.to_dict()), 201


@bp.route("/competitions/<int:competition_id>", methods=["PUT"])
@admin_required
def update_competition(competition_id):
    form = CompetitionForm.from_request().validate_or_raise()
    competition = admin_service.update_competition(
        competition_id,
        admin_id=current_user.id,
        name=form.name.data,
        description=form.description.data,
        lock_date=form.lock_date.data,
        allow_draws=form.allow_draws.data,
    )
    db.session.commit()
    return jsonify(competition.to_dict())


@bp.route("/competitions/<int:competition_id>", methods=["DELETE"])
@admin_required
def delete_competition(competition_id):
    admin_service.delete_competition(competition_id, admin_id=current_user.id)
    db.session.commit()
    return jsonify({"success": True})


# Teams


@bp.route("/teams", methods=["POST"])
@admin_required
def create_team():
    form = TeamForm.from_request().validate_or_raise()
    team = admin_service.create_team(
        form.name.data, logo_url=form.logo_url.data, admin_id=current_user.id
    )
    db.session.commit()
    return jsonify(team.to_dict()), 201


@bp.route("/teams/<int:team_id>", methods=["DELETE"])
@admin_required
def delete_team(team_id):
    admin_service.delete_team(team_id, admin_id=current_user.id)
    db.session.commit()
    return jsonify({"success": True})


# Games


@bp.route("/games", methods=["POST"])
@admin_required
def create_game():
    form = GameForm.from_request().validate_or_raise()
    game = admin_service.create_game(
        form.competition_id.data,
        form.team_a_id.data,
        form.team_b_id.data,
        form.game_date.data,
        stage=form.stage.data,
        admin_id=current_user.id,
    )
    db.session.commit()
    return jsonify(game.to_dict()), 201


@bp.route("/games/<int:game_id>", methods=["DELETE"])
@admin_required
def delete_game(game_id):
    admin_service.delete_game(game_id, admin_id=current_user.id)
    db.session.commit()
    return jsonify({"success": True})


@bp.route("/games/<int:game_id>/result", methods=["PUT"])
@admin_required
def grade_game(game_id):
    """Set or overwrite a game's result: a winning team or a draw"""
    form = GameResultForm.from_request().validate_or_raise()
    game = admin_service.grade_game(
        game_id,
        winning_team_id=form.winning_team_id.data,
        is_draw=form.is_draw.data,
        admin_id=current_user.id,
    )
    db.session.commit()

    broadcast_results_updated(game.competition_id, game_id=game.id)
    return jsonify(game.to_dict())


@bp.route("/games/<int:game_id>/result", methods=["DELETE"])
@admin_required
def clear_game_result(game_id):
    game = admin_service.clear_game_result(game_id, admin_id=current_user.id)
    db.session.commit()

    broadcast_results_updated(game.competition_id, game_id=game.id)
    return jsonify(game.to_dict())


@bp.route("/games/pending")
@admin_required
def pending_games():
    competition_id = request.args.get("competition_id", type=int)
    games = admin_service.list_pending_games(competition_id)
    return jsonify([game.to_dict() for game in games])


# Prop predictions


@bp.route("/props", methods=["POST"])
@admin_required
def create_prop():
    form = PropPredictionForm.from_request().validate_or_raise()
    prop = admin_service.create_prop_prediction(
        form.competition_id.data,
        form.question.data,
        form.lock_date.data,
        admin_id=current_user.id,
    )
    db.session.commit()
    return jsonify(prop.to_dict()), 201


@bp.route("/props/<int:prop_prediction_id>", methods=["DELETE"])
@admin_required
def delete_prop(prop_prediction_id):
    admin_service.delete_prop_prediction(prop_prediction_id, admin_id=current_user.id)
    db.session.commit()
    return jsonify({"success": True})


@bp.route("/props/<int:prop_prediction_id>/answer", methods=["PUT"])
@admin_required
def grade_prop(prop_prediction_id):
    form = PropAnswerForm.from_request().validate_or_raise()
    prop = admin_service.grade_prop(
        prop_prediction_id, form.correct_answer.data, admin_id=current_user.id
    )
    db.session.commit()

    broadcast_results_updated(prop.competition_id, prop_prediction_id=prop.id)
    return jsonify(prop.to_dict())


@bp.route("/props/<int:prop_prediction_id>/answer", methods=["DELETE"])
@admin_required
def clear_prop_answer(prop_prediction_id):
    prop = admin_service.clear_prop_answer(prop_prediction_id, admin_id=current_user.id)
    db.session.commit()

    broadcast_results_updated(prop.competition_id, prop_prediction_id=prop.id)
    return jsonify(prop.to_dict())


@bp.route("/props/pending")
@admin_required
def pending_props():
    competition_id = request.args.get("competition_id", type=int)
    props = admin_service.list_pending_props(competition_id)
    return jsonify([prop.to_dict() for prop in props])


# Audit log


@bp.route("/actions")
@admin_required
def admin_actions():
    """Recent admin actions, newest first"""
    limit = min(request.args.get("limit", 50, type=int), 500)
    competition_id = request.args.get("competition_id", type=int)
    actions = AdminAction.get_recent(limit=limit, competition_id=competition_id)
    return jsonify([action.to_dict() for action in actions])
