"""
SocketIO event handlers for leaderboard refresh notifications

Clients viewing a competition join its room. When an administrator grades a
game or question the room is told to refetch; the leaderboard itself is never
pushed because it is recomputed on every read.
"""

import logging
from datetime import datetime, timezone

from flask import request
from flask_socketio import emit, join_room, leave_room

from playpredix import db, socketio
from playpredix.models import Competition

logger = logging.getLogger(__name__)

NAMESPACE = "/leaderboard"


def competition_room(competition_id):
    return f"competition_{competition_id}"


@socketio.on("connect", namespace=NAMESPACE)
def on_connect():
    logger.info(f"Client connected to {NAMESPACE}: {request.sid}")


@socketio.on("disconnect", namespace=NAMESPACE)
def on_disconnect():
    logger.info(f"Client disconnected from {NAMESPACE}: {request.sid}")


@socketio.on("subscribe_competition", namespace=NAMESPACE)
def on_subscribe_competition(data):
    """Subscribe to result updates for a competition"""
    competition_id = (data or {}).get("competition_id")
    if competition_id is None or db.session.get(Competition, competition_id) is None:
        emit("error", {"message": "Competition not found"})
        return

    join_room(competition_room(competition_id))
    emit("subscribed", {"competition_id": competition_id})
    logger.debug(f"Client {request.sid} subscribed to competition {competition_id}")


@socketio.on("unsubscribe_competition", namespace=NAMESPACE)
def on_unsubscribe_competition(data):
    competition_id = (data or {}).get("competition_id")
    if competition_id is not None:
        leave_room(competition_room(competition_id))
        logger.debug(f"Client {request.sid} unsubscribed from competition {competition_id}")


def broadcast_results_updated(competition_id, game_id=None, prop_prediction_id=None):
    """Tell everyone watching a competition that results changed"""
    payload = {
        "competition_id": competition_id,
        "game_id": game_id,
        "prop_prediction_id": prop_prediction_id,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    socketio.emit(
        "results_updated",
        payload,
        to=competition_room(competition_id),
        namespace=NAMESPACE,
    )
    logger.debug(f"results_updated sent for competition {competition_id}")
