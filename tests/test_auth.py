"""Tests for session login and caller role resolution."""

from __future__ import annotations

import unittest
from unittest.mock import patch

from fixtureboard import create_app
from fixtureboard.auth.models import Caller, find_admin_team
from tests.conftest import TOURNAMENT_ID, make_db

MOCK_USER_ID = "user1"
MOCK_USER_DATA = {"name": "Test User", "email": "cap1@example.com", "isTeamAdmin": True}

TEAMS = [
    {"id": "team1", "name": "Smashers", "adminEmail": "Cap1@Example.com"},
    {"id": "team2", "name": "Dinkers", "adminUid": "uid-2"},
    {"id": "team3", "name": "Lobbers"},
]


class AuthRoutesTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.mock_db = make_db()
        patchers = {
            "init_app": patch("firebase_admin.initialize_app"),
            "client": patch("firebase_admin.firestore.client", return_value=self.mock_db),
            "verify_id_token": patch("fixtureboard.auth.routes.auth.verify_id_token"),
        }
        self.mocks = {name: p.start() for name, p in patchers.items()}
        for p in patchers.values():
            self.addCleanup(p.stop)

        self.app = create_app({"TESTING": True, "WTF_CSRF_ENABLED": False})
        self.client = self.app.test_client()
        self.mock_db.collection("users").document(MOCK_USER_ID).set(MOCK_USER_DATA)

    def test_session_login(self) -> None:
        self.mocks["verify_id_token"].return_value = {"uid": MOCK_USER_ID}
        response = self.client.post("/auth/session_login", json={"idToken": "token"})

        self.assertEqual(response.status_code, 200)
        with self.client.session_transaction() as sess:
            self.assertEqual(sess["user_id"], MOCK_USER_ID)
            self.assertTrue(sess["is_team_admin"])
            self.assertFalse(sess["is_super_admin"])

    def test_session_login_missing_token(self) -> None:
        response = self.client.post("/auth/session_login", json={})
        self.assertEqual(response.status_code, 400)

    def test_session_login_unknown_user(self) -> None:
        self.mocks["verify_id_token"].return_value = {"uid": "stranger"}
        response = self.client.post("/auth/session_login", json={"idToken": "token"})
        self.assertEqual(response.status_code, 404)

    def test_session_login_invalid_token(self) -> None:
        self.mocks["verify_id_token"].side_effect = ValueError("bad token")
        response = self.client.post("/auth/session_login", json={"idToken": "token"})
        self.assertEqual(response.status_code, 401)

    def test_logout(self) -> None:
        with self.client.session_transaction() as sess:
            sess["user_id"] = MOCK_USER_ID
        response = self.client.post("/auth/logout")
        self.assertEqual(response.status_code, 200)
        with self.client.session_transaction() as sess:
            self.assertNotIn("user_id", sess)

    def test_fixtures_require_login(self) -> None:
        response = self.client.get(f"/tournaments/{TOURNAMENT_ID}/fixtures/")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.get_json()["status"], "error")


class CallerTestCase(unittest.TestCase):
    def test_super_admin(self) -> None:
        caller = Caller.from_user({"uid": "a", "isSuperAdmin": True}, TEAMS)
        self.assertTrue(caller.is_super_admin)
        self.assertIsNone(caller.team_id)

    def test_team_admin_by_email_case_insensitive(self) -> None:
        caller = Caller.from_user(
            {"uid": "u", "email": "cap1@example.COM", "isTeamAdmin": True}, TEAMS
        )
        self.assertTrue(caller.is_team_admin)
        self.assertEqual(caller.team_id, "team1")
        self.assertEqual(caller.team_name, "Smashers")

    def test_team_admin_by_uid_and_team_name(self) -> None:
        self.assertEqual(find_admin_team({"uid": "uid-2"}, TEAMS)["id"], "team2")
        self.assertEqual(find_admin_team({"teamName": "lobbers"}, TEAMS)["id"], "team3")

    def test_unresolved_team_admin_owns_nothing(self) -> None:
        caller = Caller.from_user({"uid": "x", "isTeamAdmin": True}, TEAMS)
        self.assertTrue(caller.is_team_admin)
        self.assertIsNone(caller.owns_side({"team1": "team1", "team2": "team2"}))

    def test_viewer_default(self) -> None:
        caller = Caller.from_user({"uid": "v"}, TEAMS)
        self.assertFalse(caller.is_super_admin)
        self.assertFalse(caller.is_team_admin)


if __name__ == "__main__":
    unittest.main()
