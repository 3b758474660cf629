"""Data models for the fixtures blueprint."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from fixtureboard.core.constants import CATEGORY_ORDER, TBD
from fixtureboard.core.types import FirestoreDocument
from fixtureboard.errors import ValidationError

from .utils import is_valid_time, parse_date


class Fixture(FirestoreDocument, total=False):
    """A fixture document in Firestore."""

    tournamentId: str
    date: Any
    time: str
    pool: Optional[str]
    court: Optional[str]
    venueId: Optional[str]
    venueName: Optional[str]
    matchType: str
    matchTypeLabel: str
    team1: str
    team2: str
    team1Name: str
    team2Name: str
    player1Team1: str
    player2Team1: str
    player1Team2: str
    player2Team2: str
    team1Players: list[str]
    team2Players: list[str]
    fixtureGroupId: str
    matchNumber: int
    fixtureType: str
    playoffStage: str
    playoffNumber: int
    playoffName: str
    youtubeLink: str
    status: str


@dataclass(frozen=True)
class Assigned:
    """A participant slot resolved to a team."""

    team_id: str


@dataclass(frozen=True)
class Unresolved:
    """A participant slot still waiting for a team, stored as ``TBD``."""


TeamSlot = Union[Assigned, Unresolved]


def team_slot(value: Optional[str]) -> TeamSlot:
    """Read a stored team value into a slot."""
    if not value or value == TBD:
        return Unresolved()
    return Assigned(value)


def stored_team(slot: TeamSlot) -> str:
    """Serialize a slot back to the stored representation."""
    if isinstance(slot, Assigned):
        return slot.team_id
    return TBD


def unresolved_sides() -> dict[str, str]:
    """Both participants and their names set back to unresolved."""
    marker = stored_team(Unresolved())
    return {"team1": marker, "team2": marker, "team1Name": marker, "team2Name": marker}


@dataclass
class CustomFixtureSubmission:
    """A single fixture entered by hand."""

    match_type: str
    team1: str
    team2: str
    date: Optional[Union[str, datetime.date]]
    time: str
    pool: Optional[str] = None
    court: Optional[str] = None
    venue_id: Optional[str] = None
    player1_team1: str = ""
    player2_team1: str = ""
    player1_team2: str = ""
    player2_team2: str = ""
    youtube_link: str = ""

    def validate(self) -> datetime.date:
        """Validate the submission and return the parsed day."""
        if not self.match_type or not self.team1 or not self.team2:
            raise ValidationError("Please fill in all required fields.")
        if not self.time or not self.date:
            raise ValidationError("Please fill in all required fields.")
        if self.match_type not in CATEGORY_ORDER:
            raise ValidationError(f"Unknown match type: {self.match_type}.")
        if self.team1 == self.team2:
            raise ValidationError("Team 1 and Team 2 cannot be the same.")
        if not is_valid_time(self.time):
            raise ValidationError("Time must be in HH:MM format.")
        _check_distinct(self.player1_team1, self.player2_team1)
        _check_distinct(self.player1_team2, self.player2_team2)
        return parse_date(self.date)


@dataclass
class TieSubmission:
    """Input for a Game Breaker or Mini Game Breaker tie."""

    team1: str
    team2: str
    date: Optional[Union[str, datetime.date]]
    time: str = ""
    pool: Optional[str] = None
    court: Optional[str] = None
    venue_id: Optional[str] = None

    def validate(self) -> datetime.date:
        """Validate the submission and return the parsed day."""
        if not self.team1 or not self.team2 or not self.date:
            raise ValidationError("Please select both teams and a date.")
        if self.team1 == self.team2:
            raise ValidationError("Team 1 and Team 2 cannot be the same.")
        if self.time and not is_valid_time(self.time):
            raise ValidationError("Time must be in HH:MM format.")
        return parse_date(self.date)


@dataclass
class FixtureEdit:
    """Editable fields of a fixture; ``None`` means leave unchanged."""

    date: Optional[Union[str, datetime.date]] = None
    time: Optional[str] = None
    pool: Optional[str] = None
    court: Optional[str] = None
    venue_id: Optional[str] = None
    youtube_link: Optional[str] = None
    players: dict[str, str] = field(default_factory=dict)
    team1_players: Optional[list[str]] = None
    team2_players: Optional[list[str]] = None
    team1: Optional[str] = None
    team2: Optional[str] = None

    def validate(self) -> None:
        """Validate the shape of the edit before any rule is applied."""
        if self.date is not None:
            parse_date(self.date)
        if self.time and not is_valid_time(self.time):
            raise ValidationError("Time must be in HH:MM format.")
        first, second = team_slot(self.team1), team_slot(self.team2)
        if isinstance(first, Assigned) and first == second:
            raise ValidationError("Team 1 and Team 2 cannot be the same.")

    def scheduling_changes(self) -> dict[str, Any]:
        """Fields other than players that this edit sets."""
        changes = {
            "date": self.date,
            "time": self.time,
            "pool": self.pool,
            "court": self.court,
            "venueId": self.venue_id,
            "youtubeLink": self.youtube_link,
            "team1": self.team1,
            "team2": self.team2,
        }
        return {k: v for k, v in changes.items() if v is not None}


def _check_distinct(first: str, second: str) -> None:
    if first and second and first == second:
        raise ValidationError("The same player cannot fill both positions.")
