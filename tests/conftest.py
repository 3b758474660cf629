"""Common utilities for tests."""

import datetime
import unittest.mock
from typing import Any, Optional

from mockfirestore import CollectionReference, MockFirestore, Query

from fixtureboard.auth.models import Caller
from fixtureboard.core.constants import ROLE_SUPER_ADMIN, ROLE_TEAM_ADMIN, ROLE_VIEWER


def patch_mockfirestore() -> None:
    """Apply monkeypatches to mockfirestore to support FieldFilter queries."""

    def collection_where(
        self: Any,
        field_path: Optional[str] = None,
        op_string: Optional[str] = None,
        value: Any = None,
        filter: Any = None,
    ) -> Any:
        if filter:
            return self._where(filter.field_path, filter.op_string, filter.value)
        return self._where(field_path, op_string, value)

    if not hasattr(CollectionReference, "_where"):
        CollectionReference._where = CollectionReference.where
        CollectionReference.where = collection_where

    def query_where(
        self: Any,
        field_path: Optional[str] = None,
        op_string: Optional[str] = None,
        value: Any = None,
        filter: Any = None,
    ) -> Any:
        if filter:
            return self._where(filter.field_path, filter.op_string, filter.value)
        return self._where(field_path, op_string, value)

    if not hasattr(Query, "_where"):
        Query._where = Query.where
        Query.where = query_where


class MockBatch:
    def __init__(self, db: Any) -> None:
        self.db = db
        self.writes: list[tuple[Any, Any]] = []
        self.commit = unittest.mock.MagicMock(side_effect=self._real_commit)

    def set(self, ref: Any, data: Any, merge: bool = False) -> None:
        self.writes.append((ref, data))

    def delete(self, ref: Any) -> None:
        self.writes.append((ref, "DELETE"))

    def _real_commit(self) -> None:
        for ref, data in self.writes:
            if data == "DELETE":
                ref.delete()
            else:
                ref.set(data)
        self.writes = []


def make_db() -> MockFirestore:
    """A MockFirestore whose ``batch()`` hands out a fresh MockBatch each call."""
    patch_mockfirestore()
    db = MockFirestore()
    db.batch = unittest.mock.MagicMock(side_effect=lambda: MockBatch(db))
    return db


TOURNAMENT_ID = "t1"

SUPER_ADMIN = Caller(uid="admin", role=ROLE_SUPER_ADMIN)
TEAM1_ADMIN = Caller(
    uid="captain1", role=ROLE_TEAM_ADMIN, team_id="team1", team_name="Smashers"
)
TEAM2_ADMIN = Caller(
    uid="captain2", role=ROLE_TEAM_ADMIN, team_id="team2", team_name="Dinkers"
)
VIEWER = Caller(uid="viewer", role=ROLE_VIEWER)


def seed_roster(db: MockFirestore, tournament_id: str = TOURNAMENT_ID) -> None:
    """Store a tournament with three teams, their players and two venues."""
    db.collection("tournaments").document(tournament_id).set(
        {
            "name": "Autumn Cup",
            "startDate": datetime.datetime(2024, 6, 1),
            "endDate": datetime.datetime(2024, 6, 3),
            "categories": {
                "mixedDoubles": True,
                "mensSingles": True,
                "womensDoubles": False,
            },
        }
    )
    players = {
        "p1": ("Alex", "Male", 24),
        "p2": ("Bea", "Female", 31),
        "p3": ("Cole", "Male", 40),
        "p4": ("Dana", "Female", 17),
        "p5": ("Eli", "Male", 29),
        "p6": ("Fay", "Female", 22),
        "p7": ("Gus", "Male", 35),
        "p8": ("Hana", "Female", 27),
        "p9": ("Ivan", "Male", 45),
    }
    for player_id, (name, gender, age) in players.items():
        db.collection("players").document(player_id).set(
            {"tournamentId": tournament_id, "name": name, "gender": gender, "age": age}
        )
    teams = {
        "team1": ("Smashers", "cap1@example.com", ["p1", "p2", "p3", "p4"]),
        "team2": ("Dinkers", "cap2@example.com", ["p5", "p6", "p7", "p8"]),
        "team3": ("Lobbers", "cap3@example.com", ["p9"]),
    }
    for team_id, (name, email, player_ids) in teams.items():
        db.collection("teams").document(team_id).set(
            {
                "tournamentId": tournament_id,
                "name": name,
                "adminEmail": email,
                "playerIds": player_ids,
            }
        )
    db.collection("venues").document("v2").set({"name": "West Courts"})
    db.collection("venues").document("v1").set({"name": "East Courts"})


def store_fixture(db: MockFirestore, fixture_id: str, **fields: Any) -> dict[str, Any]:
    """Store a fixture document with sensible defaults and return it with its id."""
    data = {
        "tournamentId": TOURNAMENT_ID,
        "matchType": "mixedDoubles",
        "matchTypeLabel": "Mixed Doubles",
        "team1": "team1",
        "team2": "team2",
        "team1Name": "Smashers",
        "team2Name": "Dinkers",
        "date": datetime.datetime(2024, 6, 1),
        "time": "14:00",
        "player1Team1": "",
        "player2Team1": "",
        "player1Team2": "",
        "player2Team2": "",
        "fixtureType": "custom",
        "status": "scheduled",
        "createdBy": "admin",
    }
    data.update(fields)
    db.collection("fixtures").document(fixture_id).set(data)
    return {**data, "id": fixture_id}


def stored_fixtures(db: MockFirestore) -> list[dict[str, Any]]:
    """Every non-empty fixture document, with ids."""
    fixtures = []
    for doc in db.collection("fixtures").stream():
        if doc.exists:
            fixtures.append({**doc.to_dict(), "id": doc.id})
    return fixtures
