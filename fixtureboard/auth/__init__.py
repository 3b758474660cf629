"""The auth blueprint."""

from flask import Blueprint

bp = Blueprint("auth", __name__, url_prefix="/auth")

from . import routes  # noqa: E402
from .models import Caller  # noqa: E402

__all__ = ["Caller", "routes"]
