"""Tests for FixtureRepository against mockfirestore."""

from __future__ import annotations

import unittest
from unittest.mock import MagicMock

from fixtureboard.errors import NotFoundError, PersistenceError
from fixtureboard.fixtures.repository import FixtureRepository
from tests.conftest import TOURNAMENT_ID, make_db, store_fixture, stored_fixtures


class TestFixtureRepository(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_db()
        self.repo = FixtureRepository(self.db)

    def test_insert_and_get(self) -> None:
        fixture_id = self.repo.insert_fixture({"tournamentId": TOURNAMENT_ID, "time": "10:00"})
        fixture = self.repo.get_fixture(fixture_id)
        self.assertEqual(fixture["id"], fixture_id)
        self.assertEqual(fixture["time"], "10:00")

    def test_get_missing(self) -> None:
        with self.assertRaises(NotFoundError):
            self.repo.get_fixture("nope")

    def test_insert_many_reports_written_ids_on_failure(self) -> None:
        collection = MagicMock()
        refs = [MagicMock(id="a"), MagicMock(id="b")]
        collection.add.side_effect = [
            (None, refs[0]),
            (None, refs[1]),
            RuntimeError("quota exceeded"),
        ]
        db = MagicMock()
        db.collection.return_value = collection

        with self.assertRaises(PersistenceError) as ctx:
            FixtureRepository(db).insert_many_fixtures([{}, {}, {}, {}])

        self.assertEqual(ctx.exception.written_ids, ["a", "b"])
        self.assertEqual(collection.add.call_count, 3)

    def test_update_and_delete_missing(self) -> None:
        with self.assertRaises(NotFoundError):
            self.repo.update_fixture("nope", {"time": "11:00"})
        with self.assertRaises(NotFoundError):
            self.repo.delete_fixture("nope")

    def test_update_merges_fields(self) -> None:
        store_fixture(self.db, "f1", pool="A")
        self.repo.update_fixture("f1", {"time": "11:00"})
        fixture = self.repo.get_fixture("f1")
        self.assertEqual(fixture["time"], "11:00")
        self.assertEqual(fixture["pool"], "A")

    def test_delete_many_commits_in_chunks(self) -> None:
        ids = [f"f{i}" for i in range(450)]
        for fixture_id in ids:
            store_fixture(self.db, fixture_id)

        self.repo.delete_many_fixtures(ids)

        self.assertEqual(self.db.batch.call_count, 2)
        self.assertEqual(stored_fixtures(self.db), [])

    def test_query_by_team_merges_both_sides(self) -> None:
        store_fixture(self.db, "home", team1="team1", team2="team2")
        store_fixture(self.db, "away", team1="team3", team2="team1")
        store_fixture(self.db, "other", team1="team2", team2="team3")
        store_fixture(self.db, "elsewhere", tournamentId="t2")

        fixtures = self.repo.query_by_tournament_and_team(TOURNAMENT_ID, "team1")
        self.assertEqual(sorted(f["id"] for f in fixtures), ["away", "home"])
        self.assertEqual(len(self.repo.query_by_tournament(TOURNAMENT_ID)), 3)

    def test_query_by_group_sorted_by_match_number(self) -> None:
        store_fixture(self.db, "b", fixtureGroupId="g1", matchNumber=2)
        store_fixture(self.db, "a", fixtureGroupId="g1", matchNumber=1)
        store_fixture(self.db, "c", fixtureGroupId="g2", matchNumber=1)

        fixtures = self.repo.query_by_group(TOURNAMENT_ID, "g1")
        self.assertEqual([f["id"] for f in fixtures], ["a", "b"])

    def test_query_by_type(self) -> None:
        store_fixture(self.db, "p", fixtureType="playoff")
        store_fixture(self.db, "c")
        self.assertEqual(
            [f["id"] for f in self.repo.query_by_type(TOURNAMENT_ID, "playoff")], ["p"]
        )


if __name__ == "__main__":
    unittest.main()
