"""Routes for the fixtures blueprint.

Every mutating route answers with the refreshed fixture views, re-queried
from Firestore after the write.
"""

from __future__ import annotations

import datetime
from typing import Any

from firebase_admin import firestore
from flask import current_app, g, jsonify, request, session

from fixtureboard.auth.decorators import login_required
from fixtureboard.auth.models import Caller
from fixtureboard.core.types import APIResponse
from fixtureboard.errors import AuthorizationError, ValidationError
from fixtureboard.roster.services import RosterService

from . import bp
from .eligibility import age_ranges, genders
from .forms import CustomFixtureForm, FixtureStyleForm, TieForm, first_error
from .models import FixtureEdit
from .preferences import FormatPreferenceStore
from .projection import FixtureFilter, build_views
from .services import FixtureService


def _caller(tournament_id: str, db: Any) -> Caller:
    user = g.user or {"uid": session.get("user_id")}
    teams = RosterService.get_teams_by_tournament(tournament_id, db)
    return Caller.from_user(user, teams)


def _views(tournament_id: str, caller: Caller, db: Any) -> dict[str, Any]:
    tournament = RosterService.get_tournament(tournament_id, db)
    fixtures = FixtureService.load_fixtures(tournament_id, caller, db)
    fixture_filter = FixtureFilter(
        team_id=request.args.get("team") or None,
        venue_id=request.args.get("venue") or None,
        search=request.args.get("q", ""),
    )
    views = build_views(
        tournament, fixtures, fixture_filter, request.args.get("date") or None
    )
    views["style"] = FormatPreferenceStore(db).get(tournament_id)
    views["role"] = caller.role
    return views


def _success(tournament_id: str, caller: Caller, db: Any, message: str, code: int = 200):
    payload: APIResponse = {
        "status": "success",
        "message": message,
        "data": _views(tournament_id, caller, db),
    }
    return jsonify(payload), code


def _json_body() -> dict[str, Any]:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object.")
    return body


@bp.route("/", methods=["GET"])
@login_required
def list_fixtures(tournament_id):
    """List the tournament's fixtures as calendar, tie, flat and playoff views."""
    db = firestore.client()
    caller = _caller(tournament_id, db)
    data = _views(tournament_id, caller, db)
    data["venues"] = RosterService.get_venues(db)
    return jsonify({"status": "success", "data": data})


@bp.route("/style", methods=["GET", "POST"])
@login_required
def fixture_style(tournament_id):
    """Read or remember the tournament's preferred fixture format."""
    db = firestore.client()
    store = FormatPreferenceStore(db)
    if request.method == "GET":
        return jsonify({"status": "success", "data": {"style": store.get(tournament_id)}})

    caller = _caller(tournament_id, db)
    if not caller.is_super_admin:
        raise AuthorizationError("Only super admins can choose the fixture format.")
    form = FixtureStyleForm()
    if not form.validate_on_submit():
        raise ValidationError(first_error(form))
    store.set(tournament_id, form.style.data)
    return jsonify({"status": "success", "data": {"style": form.style.data}})


@bp.route("/custom", methods=["POST"])
@login_required(super_admin_required=True)
def create_custom_fixture(tournament_id):
    db = firestore.client()
    caller = _caller(tournament_id, db)
    form = CustomFixtureForm()
    if not form.validate_on_submit():
        raise ValidationError(first_error(form))
    FixtureService.create_custom(tournament_id, form.to_submission(), caller, db)
    return _success(tournament_id, caller, db, "Fixture created successfully.", 201)


@bp.route("/gamebreaker", methods=["POST"])
@login_required(super_admin_required=True)
def create_game_breaker(tournament_id):
    db = firestore.client()
    caller = _caller(tournament_id, db)
    form = TieForm()
    if not form.validate_on_submit():
        raise ValidationError(first_error(form))
    created = FixtureService.generate_game_breaker(
        tournament_id, form.to_submission(), caller, db=db
    )
    return _success(
        tournament_id, caller, db, f"Created {len(created)} Game Breaker matches.", 201
    )


@bp.route("/minigamebreaker", methods=["POST"])
@login_required(super_admin_required=True)
def create_mini_game_breaker(tournament_id):
    db = firestore.client()
    caller = _caller(tournament_id, db)
    form = TieForm()
    if not form.validate_on_submit():
        raise ValidationError(first_error(form))
    created = FixtureService.generate_mini_game_breaker(
        tournament_id, form.to_submission(), caller, db=db
    )
    return _success(
        tournament_id,
        caller,
        db,
        f"Created {len(created)} Mini Game Breaker matches.",
        201,
    )


@bp.route("/roundrobin", methods=["POST"])
@login_required(super_admin_required=True)
def create_round_robin(tournament_id):
    """Generate pool play from ``{"pools": {"Pool A": [team ids...]}}``."""
    db = firestore.client()
    caller = _caller(tournament_id, db)
    pools = _json_body().get("pools")
    if not isinstance(pools, dict) or not all(
        isinstance(members, list) for members in pools.values()
    ):
        raise ValidationError("Pools must map pool names to lists of team ids.")
    created = FixtureService.generate_round_robin(
        tournament_id,
        pools,
        caller,
        time=current_app.config["DEFAULT_FIXTURE_TIME"],
        db=db,
    )
    return _success(
        tournament_id, caller, db, f"Created {len(created)} round robin matches.", 201
    )


@bp.route("/playoffs", methods=["POST"])
@login_required(super_admin_required=True)
def create_playoffs(tournament_id):
    db = firestore.client()
    caller = _caller(tournament_id, db)
    FixtureService.generate_playoffs(
        tournament_id,
        caller,
        time=current_app.config["DEFAULT_FIXTURE_TIME"],
        db=db,
    )
    return _success(tournament_id, caller, db, "Playoff bracket created.", 201)


@bp.route("/<string:fixture_id>", methods=["GET"])
@login_required
def view_fixture(tournament_id, fixture_id):
    """A fixture with its edit deadline countdown and whether it can be edited."""
    db = firestore.client()
    caller = _caller(tournament_id, db)
    detail = FixtureService.fixture_detail(
        fixture_id,
        caller,
        now=datetime.datetime.now(),
        deadline_minutes=current_app.config["EDIT_DEADLINE_MINUTES"],
        db=db,
    )
    return jsonify({"status": "success", "data": detail})


@bp.route("/<string:fixture_id>", methods=["POST"])
@login_required
def update_fixture(tournament_id, fixture_id):
    db = firestore.client()
    caller = _caller(tournament_id, db)
    body = _json_body()
    players = body.get("players") or {}
    if not isinstance(players, dict):
        raise ValidationError("Players must map slot names to player names.")
    edit = FixtureEdit(
        date=body.get("date"),
        time=body.get("time"),
        pool=body.get("pool"),
        court=body.get("court"),
        venue_id=body.get("venueId"),
        youtube_link=body.get("youtubeLink"),
        players=players,
        team1_players=body.get("team1Players"),
        team2_players=body.get("team2Players"),
        team1=body.get("team1"),
        team2=body.get("team2"),
    )
    FixtureService.update_fixture(
        fixture_id,
        edit,
        caller,
        now=datetime.datetime.now(),
        db=db,
        deadline_minutes=current_app.config["EDIT_DEADLINE_MINUTES"],
        max_matches=current_app.config["MAX_MATCHES_PER_PLAYER"],
        decider_min_players=current_app.config["TIE_DECIDER_MIN_PLAYERS"],
    )
    return _success(tournament_id, caller, db, "Fixture updated successfully.")


@bp.route("/<string:fixture_id>", methods=["DELETE"])
@login_required(super_admin_required=True)
def delete_fixture(tournament_id, fixture_id):
    db = firestore.client()
    caller = _caller(tournament_id, db)
    confirmed = (request.get_json(silent=True) or {}).get("confirm") is True
    count = FixtureService.delete_fixture(
        fixture_id, caller, confirmed=confirmed, db=db
    )
    return _success(tournament_id, caller, db, f"Deleted {count} matches.")


@bp.route("/<string:fixture_id>/reset", methods=["POST"])
@login_required(super_admin_required=True)
def reset_playoff_fixture(tournament_id, fixture_id):
    db = firestore.client()
    caller = _caller(tournament_id, db)
    FixtureService.reset_playoff_fixture(fixture_id, caller, db=db)
    return _success(tournament_id, caller, db, "Playoff fixture reset.")


@bp.route("/groups/<string:group_id>", methods=["DELETE"])
@login_required(super_admin_required=True)
def delete_fixture_group(tournament_id, group_id):
    """Delete a whole tie; the body must carry ``{"confirm": true}``."""
    db = firestore.client()
    caller = _caller(tournament_id, db)
    confirmed = (request.get_json(silent=True) or {}).get("confirm") is True
    count = FixtureService.delete_group(
        tournament_id, group_id, caller, confirmed=confirmed, db=db
    )
    return _success(tournament_id, caller, db, f"Deleted {count} matches.")


@bp.route("/<string:fixture_id>/eligible", methods=["GET"])
@login_required
def eligible_players(tournament_id, fixture_id):
    """Team players for one slot, each marked available with a reason."""
    db = firestore.client()
    caller = _caller(tournament_id, db)
    players = FixtureService.eligible_players(
        fixture_id,
        request.args.get("side", ""),
        request.args.get("position", ""),
        caller,
        search=request.args.get("q", ""),
        age_filter=request.args.get("age", ""),
        gender_filter=request.args.get("gender", ""),
        max_matches=current_app.config["MAX_MATCHES_PER_PLAYER"],
        db=db,
    )
    return jsonify(
        {
            "status": "success",
            "data": {
                "players": players,
                "ageRanges": age_ranges(players),
                "genders": genders(players),
            },
        }
    )
