"""Service layer for roster lookups."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from fixtureboard.core.constants import (
    CATEGORY_LABELS,
    CATEGORY_ORDER,
    DOUBLES_CATEGORIES,
    PLAYERS_COLLECTION,
    TEAMS_COLLECTION,
    TOURNAMENTS_COLLECTION,
    VENUES_COLLECTION,
)
from fixtureboard.errors import NotFoundError

from .models import Category, Player, Team, Tournament, Venue

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client


def _with_id(doc: Any) -> dict[str, Any]:
    data = doc.to_dict() or {}
    data["id"] = doc.id
    return data


class RosterService:
    """Handles read access to tournaments and their rosters."""

    @staticmethod
    def get_tournament(tournament_id: str, db: Client | None = None) -> Tournament:
        """Fetch a tournament or raise NotFoundError."""
        if db is None:
            db = firestore.client()
        doc = cast(
            "DocumentSnapshot",
            db.collection(TOURNAMENTS_COLLECTION).document(tournament_id).get(),
        )
        if not doc.exists:
            raise NotFoundError("Tournament not found.")
        return cast(Tournament, _with_id(doc))

    @staticmethod
    def get_teams_by_tournament(
        tournament_id: str, db: Client | None = None
    ) -> list[Team]:
        """Fetch all teams registered for a tournament."""
        if db is None:
            db = firestore.client()
        docs = (
            db.collection(TEAMS_COLLECTION)
            .where(filter=firestore.FieldFilter("tournamentId", "==", tournament_id))
            .stream()
        )
        return [cast(Team, _with_id(doc)) for doc in docs]

    @staticmethod
    def get_players_by_tournament(
        tournament_id: str, db: Client | None = None
    ) -> list[Player]:
        """Fetch all players registered for a tournament."""
        if db is None:
            db = firestore.client()
        docs = (
            db.collection(PLAYERS_COLLECTION)
            .where(filter=firestore.FieldFilter("tournamentId", "==", tournament_id))
            .stream()
        )
        return [cast(Player, _with_id(doc)) for doc in docs]

    @staticmethod
    def get_team(team_id: str, db: Client | None = None) -> Team:
        """Fetch a single team or raise NotFoundError."""
        if db is None:
            db = firestore.client()
        doc = cast(
            "DocumentSnapshot", db.collection(TEAMS_COLLECTION).document(team_id).get()
        )
        if not doc.exists:
            raise NotFoundError("Team not found.")
        return cast(Team, _with_id(doc))

    @staticmethod
    def get_venues(db: Client | None = None) -> list[Venue]:
        """Fetch all venues, sorted by name."""
        if db is None:
            db = firestore.client()
        venues = [
            cast(Venue, _with_id(doc))
            for doc in db.collection(VENUES_COLLECTION).stream()
            if doc.exists
        ]
        venues.sort(key=lambda v: (v.get("name") or "").lower())
        return venues

    @staticmethod
    def get_team_players(
        team: Team | None, players: list[Player]
    ) -> list[Player]:
        """Resolve a team's players in ``playerIds`` order, skipping unknown ids."""
        if not team:
            return []
        players_map = {p["id"]: p for p in players if p.get("id")}
        return [
            players_map[pid] for pid in team.get("playerIds", []) if pid in players_map
        ]

    @staticmethod
    def enabled_categories(tournament: Tournament) -> list[Category]:
        """Return the tournament's enabled categories in canonical order."""
        raw = tournament.get("categories") or {}
        if isinstance(raw, dict):
            enabled = {key for key, on in raw.items() if on}
        else:
            enabled = set(raw)
        return [
            {
                "key": key,
                "label": CATEGORY_LABELS[key],
                "type": "doubles" if key in DOUBLES_CATEGORIES else "singles",
            }
            for key in CATEGORY_ORDER
            if key in enabled
        ]
