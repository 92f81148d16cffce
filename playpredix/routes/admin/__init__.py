from flask import Blueprint

bp = Blueprint("admin", __name__)

from playpredix.routes.admin import routes  # noqa: F401, E402
