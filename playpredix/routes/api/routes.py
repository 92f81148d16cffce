from flask import jsonify, request
from flask_login import current_user, login_required

from playpredix import db, limiter
from playpredix.errors import NotFound, ValidationError
from playpredix.forms.leagues import CreateLeagueForm, JoinLeagueForm
from playpredix.forms.picks import MakePickForm
from playpredix.models import Competition, Team
from playpredix.routes.api import bp
from playpredix.services import league_service, pick_service
from playpredix.services.leaderboard_service import LeaderboardService
from playpredix.utils.cache_utils import cached_route


def _current_participant_id():
    return current_user.id if current_user.is_authenticated else None


def _league_id_arg():
    league_id = request.args.get("league_id", type=str)
    return league_id.strip() if league_id and league_id.strip() else None


@bp.route("/health")
@limiter.exempt
def health():
    return jsonify({"status": "ok"})


@bp.route("/competitions")
@cached_route(timeout=300, key_prefix="competitions")
def competitions():
    """All competitions, newest first"""
    return [competition.to_dict() for competition in Competition.get_all()]


@bp.route("/competitions/<int:competition_id>")
def competition_detail(competition_id):
    competition = db.session.get(Competition, competition_id)
    if competition is None:
        raise NotFound(f"Competition {competition_id} not found", competition_id=competition_id)
    return jsonify(competition.to_dict(include_events=True))


@bp.route("/teams")
@cached_route(timeout=3600, key_prefix="teams")
def teams():
    return [team.to_dict() for team in Team.get_all()]


@bp.route("/competitions/<int:competition_id>/leaderboard")
def competition_leaderboard(competition_id):
    """Public leaderboard, or a league's when ?league_id= is given"""
    leaderboard = LeaderboardService().get_leaderboard(
        competition_id,
        league_id=_league_id_arg(),
        participant_id=_current_participant_id(),
    )
    return jsonify(leaderboard.to_dict())


@bp.route("/leagues/<league_id>/leaderboard")
def league_leaderboard(league_id):
    leaderboard = LeaderboardService().get_league_leaderboard(
        league_id, participant_id=_current_participant_id()
    )
    return jsonify(leaderboard.to_dict())


@bp.route("/competitions/<int:competition_id>/picks")
@login_required
def user_picks(competition_id):
    """The signed-in participant's picks in the public or a league context"""
    if db.session.get(Competition, competition_id) is None:
        raise NotFound(f"Competition {competition_id} not found", competition_id=competition_id)

    picks = pick_service.get_user_picks(
        current_user.id, competition_id, league_id=_league_id_arg()
    )
    return jsonify([pick.to_dict() for pick in picks])


@bp.route("/competitions/<int:competition_id>/picks", methods=["POST"])
@login_required
def make_picks(competition_id):
    """
    Submit picks.

    The body is either a single pick ({"game_id": 1, "pick": "3"}) or a batch
    ({"picks": [...]}). A batch saves what it can and reports the rest.
    """
    if db.session.get(Competition, competition_id) is None:
        raise NotFound(f"Competition {competition_id} not found", competition_id=competition_id)

    league_id = _league_id_arg()
    payload = request.get_json(silent=True)

    if isinstance(payload, dict) and "picks" in payload:
        items = payload["picks"]
        if not isinstance(items, list):
            raise ValidationError("picks must be a list")

        result = pick_service.submit_picks(
            current_user.id, competition_id, items, league_id=league_id
        )
        db.session.commit()
        return jsonify(
            {
                "saved": [pick.to_dict() for pick in result["saved"]],
                "errors": result["errors"],
            }
        )

    form = MakePickForm.from_request().validate_or_raise()
    user_pick, created = pick_service.submit_pick(
        current_user.id,
        form.pick.data,
        game_id=form.game_id.data,
        prop_prediction_id=form.prop_prediction_id.data,
        league_id=league_id,
        competition_id=competition_id,
    )

    db.session.commit()
    return jsonify(user_pick.to_dict()), 201 if created else 200


@bp.route("/leagues")
@login_required
def leagues():
    """Leagues the signed-in participant belongs to"""
    user_leagues = league_service.list_leagues_for_user(current_user.id)
    return jsonify([league.to_dict() for league in user_leagues])


@bp.route("/leagues", methods=["POST"])
@login_required
@limiter.limit("20 per hour")
def create_league():
    form = CreateLeagueForm.from_request().validate_or_raise()
    league = league_service.create_league(
        form.name.data, form.competition_id.data, current_user.id
    )
    db.session.commit()
    return jsonify(league.to_dict(include_members=True)), 201


@bp.route("/leagues/join", methods=["POST"])
@login_required
@limiter.limit("30 per hour")
def join_league():
    form = JoinLeagueForm.from_request().validate_or_raise()
    success, message, league = league_service.join_league(
        form.invite_code.data, current_user.id
    )
    if league is None:
        raise NotFound(message)
    if not success:
        return jsonify({"success": False, "message": message, "league": league.to_dict()}), 409

    db.session.commit()
    return jsonify({"success": True, "message": message, "league": league.to_dict()})


@bp.route("/leagues/<league_id>")
@login_required
def league_detail(league_id):
    """A league with its members; visible to members only"""
    league = league_service.get_league(league_id)
    if not league.is_user_member(current_user.id):
        return jsonify({"error": "forbidden", "message": "Not a member of this league"}), 403
    return jsonify(league.to_dict(include_members=True))


@bp.route("/leagues/<league_id>/leave", methods=["POST"])
@login_required
def leave_league(league_id):
    success, message = league_service.leave_league(league_id, current_user.id)
    if not success:
        return jsonify({"success": False, "message": message}), 400

    db.session.commit()
    return jsonify({"success": True, "message": message})


@bp.route("/leagues/<league_id>/members/<user_id>", methods=["DELETE"])
@login_required
def remove_league_member(league_id, user_id):
    """League admin removes a member"""
    league = league_service.get_league(league_id)
    if not league.is_user_admin(current_user.id):
        return jsonify({"success": False, "message": "Only the league admin can remove members"}), 403

    success, message = league_service.remove_member(league_id, current_user.id, user_id)
    if not success:
        return jsonify({"success": False, "message": message}), 400

    db.session.commit()
    return jsonify({"success": True, "message": message})


@bp.route("/leagues/<league_id>", methods=["DELETE"])
@login_required
def delete_league(league_id):
    success, message = league_service.delete_league(league_id, current_user.id)
    if not success:
        return jsonify({"success": False, "message": message}), 403

    db.session.commit()
    return jsonify({"success": True, "message": message})
