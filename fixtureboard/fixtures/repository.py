"""Firestore access for fixture documents."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, cast

from firebase_admin import firestore

from fixtureboard.core.constants import (
    FIRESTORE_BATCH_LIMIT,
    FIXTURE_ROUND_ROBIN,
    FIXTURES_COLLECTION,
)
from fixtureboard.errors import NotFoundError, PersistenceError

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client


def _with_id(doc: Any) -> dict[str, Any]:
    data = doc.to_dict() or {}
    data["id"] = doc.id
    return data


class FixtureRepository:
    """Insert, update, delete and query fixtures of the ``fixtures`` collection."""

    def __init__(self, db: Client | None = None) -> None:
        self.db = db if db is not None else firestore.client()

    @property
    def collection(self) -> Any:
        return self.db.collection(FIXTURES_COLLECTION)

    def get_fixture(self, fixture_id: str) -> dict[str, Any]:
        doc = cast("DocumentSnapshot", self.collection.document(fixture_id).get())
        if not doc.exists:
            raise NotFoundError("Fixture not found.")
        return _with_id(doc)

    def insert_fixture(self, record: dict[str, Any]) -> str:
        """Store one fixture and return its new id."""
        try:
            _, ref = self.collection.add(record)
        except Exception as e:
            logging.error(f"Error inserting fixture: {e}")
            raise PersistenceError("Failed to create fixture.") from e
        return str(ref.id)

    def insert_many_fixtures(self, records: Iterable[dict[str, Any]]) -> list[str]:
        """Store fixtures one after another.

        Not atomic: the first failure stops the loop and the error carries the
        ids already written, which stay persisted.
        """
        written: list[str] = []
        for record in records:
            try:
                _, ref = self.collection.add(record)
            except Exception as e:
                logging.error(
                    f"Error inserting fixture {len(written) + 1} of batch: {e}"
                )
                raise PersistenceError(
                    "Failed to create all fixtures.", written_ids=written
                ) from e
            written.append(str(ref.id))
        return written

    def update_fixture(self, fixture_id: str, data: dict[str, Any]) -> None:
        ref = self.collection.document(fixture_id)
        if not cast("DocumentSnapshot", ref.get()).exists:
            raise NotFoundError("Fixture not found.")
        try:
            ref.update(data)
        except Exception as e:
            logging.error(f"Error updating fixture {fixture_id}: {e}")
            raise PersistenceError("Failed to update fixture.") from e

    def delete_fixture(self, fixture_id: str) -> None:
        ref = self.collection.document(fixture_id)
        if not cast("DocumentSnapshot", ref.get()).exists:
            raise NotFoundError("Fixture not found.")
        try:
            ref.delete()
        except Exception as e:
            logging.error(f"Error deleting fixture {fixture_id}: {e}")
            raise PersistenceError("Failed to delete fixture.") from e

    def delete_many_fixtures(self, fixture_ids: list[str]) -> None:
        """Delete fixtures in write batches; each batch commits on its own."""
        deleted: list[str] = []
        for start in range(0, len(fixture_ids), FIRESTORE_BATCH_LIMIT):
            chunk = fixture_ids[start : start + FIRESTORE_BATCH_LIMIT]
            batch = self.db.batch()
            for fixture_id in chunk:
                batch.delete(self.collection.document(fixture_id))
            try:
                batch.commit()
            except Exception as e:
                logging.error(f"Error deleting fixtures batch: {e}")
                raise PersistenceError(
                    "Failed to delete all fixtures.", written_ids=deleted
                ) from e
            deleted.extend(chunk)

    def query_by_tournament(self, tournament_id: str) -> list[dict[str, Any]]:
        docs = self.collection.where(
            filter=firestore.FieldFilter("tournamentId", "==", tournament_id)
        ).stream()
        return [_with_id(doc) for doc in docs]

    def query_by_tournament_and_team(
        self, tournament_id: str, team_id: str
    ) -> list[dict[str, Any]]:
        """Fixtures where the team is on either side."""
        results: dict[str, dict[str, Any]] = {}
        for side in ("team1", "team2"):
            docs = (
                self.collection.where(
                    filter=firestore.FieldFilter("tournamentId", "==", tournament_id)
                )
                .where(filter=firestore.FieldFilter(side, "==", team_id))
                .stream()
            )
            for doc in docs:
                results[doc.id] = _with_id(doc)
        return list(results.values())

    def query_by_group(
        self, tournament_id: str, group_id: str
    ) -> list[dict[str, Any]]:
        docs = (
            self.collection.where(
                filter=firestore.FieldFilter("tournamentId", "==", tournament_id)
            )
            .where(filter=firestore.FieldFilter("fixtureGroupId", "==", group_id))
            .stream()
        )
        fixtures = [_with_id(doc) for doc in docs]
        fixtures.sort(key=lambda f: f.get("matchNumber") or 0)
        return fixtures

    def query_by_type(
        self, tournament_id: str, fixture_type: str
    ) -> list[dict[str, Any]]:
        docs = (
            self.collection.where(
                filter=firestore.FieldFilter("tournamentId", "==", tournament_id)
            )
            .where(filter=firestore.FieldFilter("fixtureType", "==", fixture_type))
            .stream()
        )
        return [_with_id(doc) for doc in docs]

    def query_by_pairing(
        self, tournament_id: str, pool: str | None, team1: str, team2: str
    ) -> list[dict[str, Any]]:
        """Round-robin fixtures of one pool pairing, one per category."""
        docs = (
            self.collection.where(
                filter=firestore.FieldFilter("tournamentId", "==", tournament_id)
            )
            .where(filter=firestore.FieldFilter("pool", "==", pool))
            .where(filter=firestore.FieldFilter("team1", "==", team1))
            .where(filter=firestore.FieldFilter("team2", "==", team2))
            .stream()
        )
        return [
            _with_id(doc)
            for doc in docs
            if (doc.to_dict() or {}).get("fixtureType") == FIXTURE_ROUND_ROBIN
        ]
