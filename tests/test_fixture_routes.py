"""Tests for the fixtures blueprint using mockfirestore."""

from __future__ import annotations

import datetime
import unittest
from unittest.mock import patch

from fixtureboard import create_app
from fixtureboard.errors import PersistenceError
from tests.conftest import TOURNAMENT_ID, make_db, seed_roster, store_fixture, stored_fixtures

BASE = f"/tournaments/{TOURNAMENT_ID}/fixtures"

USERS = {
    "admin": {"name": "Organiser", "isSuperAdmin": True},
    "captain1": {"name": "Captain One", "email": "cap1@example.com", "isTeamAdmin": True},
    "fan": {"name": "Fan"},
}


class FixtureRoutesTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.mock_db = make_db()
        seed_roster(self.mock_db)
        for uid, data in USERS.items():
            self.mock_db.collection("users").document(uid).set(data)

        patchers = {
            "init_app": patch("firebase_admin.initialize_app"),
            "client": patch("firebase_admin.firestore.client", return_value=self.mock_db),
            "server_timestamp": patch(
                "firebase_admin.firestore.SERVER_TIMESTAMP", "2024-05-01T00:00:00"
            ),
        }
        self.mocks = {name: p.start() for name, p in patchers.items()}
        for p in patchers.values():
            self.addCleanup(p.stop)

        self.app = create_app({"TESTING": True, "WTF_CSRF_ENABLED": False})
        self.client = self.app.test_client()

    def _login(self, uid: str) -> None:
        with self.client.session_transaction() as sess:
            sess["user_id"] = uid
            sess["is_super_admin"] = bool(USERS[uid].get("isSuperAdmin"))
            sess["is_team_admin"] = bool(USERS[uid].get("isTeamAdmin"))

    def test_list_views(self) -> None:
        self._login("fan")
        store_fixture(self.mock_db, "f1")
        store_fixture(self.mock_db, "f2", date=datetime.datetime(2024, 6, 2))

        response = self.client.get(f"{BASE}/")

        self.assertEqual(response.status_code, 200)
        data = response.get_json()["data"]
        self.assertEqual(data["total"], 2)
        self.assertEqual([d["count"] for d in data["calendar"]], [1, 1, 0])
        self.assertEqual(data["role"], "viewer")
        self.assertEqual([v["name"] for v in data["venues"]], ["East Courts", "West Courts"])

    def test_list_views_date_filter(self) -> None:
        self._login("fan")
        store_fixture(self.mock_db, "f1")
        store_fixture(self.mock_db, "f2", date=datetime.datetime(2024, 6, 2))

        response = self.client.get(f"{BASE}/?date=2024-06-02")
        fixtures = response.get_json()["data"]["fixtures"]
        self.assertEqual([f["id"] for f in fixtures], ["f2"])

    def test_team_admin_sees_own_fixtures(self) -> None:
        self._login("captain1")
        store_fixture(self.mock_db, "mine")
        store_fixture(self.mock_db, "other", team1="team2", team2="team3")

        data = self.client.get(f"{BASE}/").get_json()["data"]
        self.assertEqual([f["id"] for f in data["fixtures"]], ["mine"])
        self.assertEqual(data["role"], "team_admin")

    def test_create_game_breaker(self) -> None:
        self._login("admin")
        response = self.client.post(
            f"{BASE}/gamebreaker",
            json={"team1": "team1", "team2": "team2", "date": "2024-06-02", "time": "10:00"},
        )

        self.assertEqual(response.status_code, 201)
        data = response.get_json()["data"]
        self.assertEqual(len(data["groups"]), 1)
        self.assertEqual(data["groups"][0]["matchCount"], 7)
        self.assertEqual(len(stored_fixtures(self.mock_db)), 7)

    def test_create_game_breaker_same_team(self) -> None:
        self._login("admin")
        response = self.client.post(
            f"{BASE}/gamebreaker",
            json={"team1": "team1", "team2": "team1", "date": "2024-06-02"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.get_json()["message"], "Team 1 and Team 2 cannot be the same."
        )

    def test_create_mini_game_breaker_forbidden_for_team_admin(self) -> None:
        self._login("captain1")
        response = self.client.post(
            f"{BASE}/minigamebreaker",
            json={"team1": "team1", "team2": "team2", "date": "2024-06-02"},
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(stored_fixtures(self.mock_db), [])

    def test_create_custom(self) -> None:
        self._login("admin")
        response = self.client.post(
            f"{BASE}/custom",
            json={
                "match_type": "mixedDoubles",
                "team1": "team1",
                "team2": "team3",
                "date": "2024-06-03",
                "time": "11:15",
            },
        )
        self.assertEqual(response.status_code, 201)
        [fixture] = response.get_json()["data"]["fixtures"]
        self.assertEqual(fixture["team2Name"], "Lobbers")

    def test_create_round_robin(self) -> None:
        self._login("admin")
        response = self.client.post(
            f"{BASE}/roundrobin", json={"pools": {"Pool A": ["team1", "team2"]}}
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(len(response.get_json()["data"]["fixtures"]), 2)

    def test_create_round_robin_bad_body(self) -> None:
        self._login("admin")
        response = self.client.post(f"{BASE}/roundrobin", json={"pools": ["team1"]})
        self.assertEqual(response.status_code, 400)

    def test_playoffs_conflict(self) -> None:
        self._login("admin")
        first = self.client.post(f"{BASE}/playoffs")
        self.assertEqual(first.status_code, 201)
        self.assertEqual(len(first.get_json()["data"]["playoffs"]), 8)

        second = self.client.post(f"{BASE}/playoffs")
        self.assertEqual(second.status_code, 409)

    def test_update_as_team_admin(self) -> None:
        self._login("captain1")
        store_fixture(self.mock_db, "f1", date=datetime.datetime(2099, 1, 1))

        response = self.client.post(
            f"{BASE}/f1",
            json={"players": {"player1Team1": "Alex", "player2Team1": "Bea"}},
        )
        self.assertEqual(response.status_code, 200)
        [fixture] = response.get_json()["data"]["fixtures"]
        self.assertEqual(fixture["player2Team1"], "Bea")

    def test_update_after_deadline(self) -> None:
        self._login("captain1")
        store_fixture(self.mock_db, "f1", date=datetime.datetime(2000, 1, 1))

        response = self.client.post(
            f"{BASE}/f1", json={"players": {"player1Team1": "Alex"}}
        )
        self.assertEqual(response.status_code, 403)

    def test_view_fixture(self) -> None:
        self._login("captain1")
        store_fixture(self.mock_db, "f1", date=datetime.datetime(2099, 1, 1))

        data = self.client.get(f"{BASE}/f1").get_json()["data"]
        self.assertTrue(data["canEdit"])
        self.assertFalse(data["countdown"]["expired"])

    def test_view_missing_fixture(self) -> None:
        self._login("admin")
        response = self.client.get(f"{BASE}/nope")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()["message"], "Fixture not found.")

    def test_delete_fixture(self) -> None:
        self._login("admin")
        store_fixture(self.mock_db, "f1")
        response = self.client.delete(f"{BASE}/f1")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["data"]["total"], 0)

    def test_delete_group_needs_confirm(self) -> None:
        self._login("admin")
        store_fixture(self.mock_db, "a", fixtureGroupId="g1", fixtureType="dreambreaker")
        store_fixture(self.mock_db, "b", fixtureGroupId="g1", fixtureType="dreambreaker")

        response = self.client.delete(f"{BASE}/groups/g1", json={})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(len(stored_fixtures(self.mock_db)), 2)

        response = self.client.delete(f"{BASE}/groups/g1", json={"confirm": True})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["message"], "Deleted 2 matches.")
        self.assertEqual(stored_fixtures(self.mock_db), [])

    def test_delete_tie_leg_needs_confirm(self) -> None:
        self._login("admin")
        store_fixture(self.mock_db, "a", fixtureGroupId="g1", fixtureType="dreambreaker")
        store_fixture(self.mock_db, "b", fixtureGroupId="g1", fixtureType="dreambreaker")

        response = self.client.delete(f"{BASE}/a", json={})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(len(stored_fixtures(self.mock_db)), 2)

        response = self.client.delete(f"{BASE}/a", json={"confirm": True})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["message"], "Deleted 2 matches.")
        self.assertEqual(stored_fixtures(self.mock_db), [])

    def test_privileged_routes_need_super_admin_session(self) -> None:
        self._login("captain1")
        store_fixture(self.mock_db, "p1", fixtureType="playoff", playoffStage="final")

        responses = [
            self.client.post(f"{BASE}/playoffs"),
            self.client.post(f"{BASE}/p1/reset"),
            self.client.delete(f"{BASE}/p1"),
        ]
        for response in responses:
            self.assertEqual(response.status_code, 403)
            self.assertEqual(response.get_json()["status"], "error")
        self.assertEqual(len(stored_fixtures(self.mock_db)), 1)

    def test_reset_playoff(self) -> None:
        self._login("admin")
        store_fixture(self.mock_db, "p1", fixtureType="playoff", playoffStage="final")
        response = self.client.post(f"{BASE}/p1/reset")
        self.assertEqual(response.status_code, 200)
        [fixture] = response.get_json()["data"]["playoffs"]
        self.assertEqual(fixture["team1"], "TBD")

    def test_eligible_players(self) -> None:
        self._login("captain1")
        store_fixture(
            self.mock_db, "f1", date=datetime.datetime(2099, 1, 1), player1Team1="Alex"
        )
        response = self.client.get(f"{BASE}/f1/eligible?side=team1&position=player2")
        self.assertEqual(response.status_code, 200)
        data = response.get_json()["data"]
        available = [p["name"] for p in data["players"] if p["available"]]
        self.assertEqual(available, ["Bea", "Dana"])
        self.assertIn({"value": "Female", "label": "Female"}, data["genders"])

    def test_style_preference(self) -> None:
        self._login("admin")
        response = self.client.post(f"{BASE}/style", json={"style": "roundrobin"})
        self.assertEqual(response.status_code, 200)

        response = self.client.get(f"{BASE}/style")
        self.assertEqual(response.get_json()["data"]["style"], "roundrobin")

    def test_style_preference_rejects_unknown(self) -> None:
        self._login("admin")
        response = self.client.post(f"{BASE}/style", json={"style": "swiss"})
        self.assertEqual(response.status_code, 400)

    def test_persistence_failure_is_generic_500(self) -> None:
        self._login("admin")
        with patch(
            "fixtureboard.fixtures.repository.FixtureRepository.insert_many_fixtures",
            side_effect=PersistenceError("Failed to create all fixtures.", written_ids=["x"]),
        ):
            response = self.client.post(f"{BASE}/playoffs")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            response.get_json()["message"],
            "A database error occurred. Please refresh and try again.",
        )

    def test_unknown_tournament(self) -> None:
        self._login("fan")
        response = self.client.get("/tournaments/nope/fixtures/")
        self.assertEqual(response.status_code, 404)


if __name__ == "__main__":
    unittest.main()
