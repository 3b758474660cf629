"""Data models for the roster documents."""

from __future__ import annotations

from typing import Any, TypedDict

from fixtureboard.core.types import FirestoreDocument


class Tournament(FirestoreDocument, total=False):
    """A tournament document in Firestore."""

    name: str
    startDate: Any
    endDate: Any
    categories: dict[str, bool] | list[str]


class Team(FirestoreDocument, total=False):
    """A team document, scoped to one tournament."""

    tournamentId: str
    name: str
    adminEmail: str
    adminUid: str
    playerIds: list[str]


class Player(FirestoreDocument, total=False):
    """A player document; team membership lives on the team."""

    tournamentId: str
    name: str
    gender: str
    age: int


class Venue(FirestoreDocument, total=False):
    """A venue document, shared by all tournaments."""

    name: str


class Category(TypedDict):
    """A match category as offered by a tournament."""

    key: str
    label: str
    type: str
