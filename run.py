# Eventlet monkey patching MUST be first before any other imports
import eventlet
eventlet.monkey_patch()

import os  # noqa: E402

from playpredix import create_app, db, socketio  # noqa: E402
from playpredix.models import (  # noqa: E402
    Competition,
    Game,
    League,
    Profile,
    PropPrediction,
    Team,
    UserPick,
)

app = create_app()


@app.shell_context_processor
def make_shell_context():
    return {
        "db": db,
        "Profile": Profile,
        "Competition": Competition,
        "Team": Team,
        "Game": Game,
        "PropPrediction": PropPrediction,
        "UserPick": UserPick,
        "League": League,
    }


if __name__ == "__main__":
    socketio.run(
        app,
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", 5000)),
        debug=app.config.get("DEBUG", False),
    )
