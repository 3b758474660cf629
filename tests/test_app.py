"""Tests for the application factory and error handling."""

from __future__ import annotations

import unittest
from unittest.mock import patch

from fixtureboard import create_app
from tests.conftest import make_db


class AppTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.mock_db = make_db()
        patchers = [
            patch("firebase_admin.initialize_app"),
            patch("firebase_admin.firestore.client", return_value=self.mock_db),
        ]
        for p in patchers:
            p.start()
            self.addCleanup(p.stop)

    def test_rule_defaults_in_config(self) -> None:
        app = create_app({"TESTING": True})
        self.assertEqual(app.config["EDIT_DEADLINE_MINUTES"], 60)
        self.assertEqual(app.config["MAX_MATCHES_PER_PLAYER"], 2)
        self.assertEqual(app.config["TIE_DECIDER_MIN_PLAYERS"], 6)
        self.assertEqual(app.config["DEFAULT_FIXTURE_TIME"], "09:00")

    def test_config_from_environment(self) -> None:
        with patch.dict("os.environ", {"EDIT_DEADLINE_MINUTES": "30"}):
            app = create_app({"TESTING": True})
        self.assertEqual(app.config["EDIT_DEADLINE_MINUTES"], 30)

    def test_test_config_overrides(self) -> None:
        app = create_app({"TESTING": True, "MAX_MATCHES_PER_PLAYER": 3})
        self.assertEqual(app.config["MAX_MATCHES_PER_PLAYER"], 3)

    def test_unknown_route_is_json_404(self) -> None:
        app = create_app({"TESTING": True})
        response = app.test_client().get("/nowhere")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()["message"], "Page Not Found")

    def test_stale_session_is_cleared(self) -> None:
        app = create_app({"TESTING": True, "WTF_CSRF_ENABLED": False})
        client = app.test_client()
        with client.session_transaction() as sess:
            sess["user_id"] = "deleted-user"

        response = client.get("/tournaments/t1/fixtures/")

        self.assertEqual(response.status_code, 401)
        with client.session_transaction() as sess:
            self.assertNotIn("user_id", sess)


if __name__ == "__main__":
    unittest.main()
