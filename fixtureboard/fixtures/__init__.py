"""The fixtures blueprint."""

from flask import Blueprint

bp = Blueprint("fixtures", __name__, url_prefix="/tournaments/<tournament_id>/fixtures")

from . import routes  # noqa: E402
from .projection import FixtureBoard  # noqa: E402
from .services import FixtureService  # noqa: E402

__all__ = ["FixtureBoard", "FixtureService", "routes"]
