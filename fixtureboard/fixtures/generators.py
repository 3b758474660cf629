"""Format generators that turn a chosen format into fixture records.

Every generator is pure: it returns the records to persist and never touches
Firestore. Audit fields (``createdBy``, ``createdAt``) are stamped by the
service that writes the batch.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from itertools import combinations
from typing import Any, Mapping, Optional, Sequence

from fixtureboard.core.constants import (
    CATEGORY_LABELS,
    DEFAULT_FIXTURE_TIME,
    FIXTURE_CUSTOM,
    FIXTURE_GAME_BREAKER,
    FIXTURE_MINI_GAME_BREAKER,
    FIXTURE_PLAYOFF,
    FIXTURE_ROUND_ROBIN,
    MENS_DOUBLES,
    MENS_SINGLES,
    MIXED_DOUBLES,
    PLAYOFF_SLOTS,
    PLAYOFF_STAGE_LABELS,
    STATUS_SCHEDULED,
    TIE_DECIDER,
    WOMENS_DOUBLES,
    WOMENS_SINGLES,
)
from fixtureboard.errors import NotFoundError, ValidationError
from fixtureboard.roster.models import Category

from .models import CustomFixtureSubmission, Fixture, TieSubmission, unresolved_sides
from .utils import to_timestamp

GAME_BREAKER_LEGS = (
    MENS_DOUBLES,
    WOMENS_DOUBLES,
    MENS_SINGLES,
    WOMENS_SINGLES,
    MENS_DOUBLES,
    MIXED_DOUBLES,
)

MINI_GAME_BREAKER_LEGS = (
    MENS_DOUBLES,
    MENS_DOUBLES,
    MIXED_DOUBLES,
    MIXED_DOUBLES,
)

PLAYOFF_CATEGORY = MIXED_DOUBLES


@dataclass
class TiePlan:
    """The legs of one tie plus its decider, all sharing ``group_id``."""

    group_id: str
    legs: list[Fixture]
    decider: Fixture

    def all(self) -> list[Fixture]:
        return [*self.legs, self.decider]


def _team_name(teams: Mapping[str, Mapping[str, Any]], team_id: str) -> str:
    team = teams.get(team_id)
    if team is None:
        raise NotFoundError(f"Team {team_id} not found.")
    return team.get("name", "")


def _venue_fields(venue: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    if not venue:
        return {"venueId": None, "venueName": None}
    return {"venueId": venue.get("id"), "venueName": venue.get("name")}


def make_group_id(team1: str, team2: str, now: datetime.datetime) -> str:
    """Group id unique per creation: both team ids and a millisecond stamp."""
    return f"{team1}_{team2}_{int(now.timestamp() * 1000)}"


def leg_labels(keys: Sequence[str]) -> list[str]:
    """Labels for a leg sequence, suffixing repeated categories with ``(n)``."""
    seen: dict[str, int] = {}
    labels = []
    for key in keys:
        seen[key] = seen.get(key, 0) + 1
        label = CATEGORY_LABELS[key]
        if seen[key] > 1:
            label = f"{label} ({seen[key]})"
        labels.append(label)
    return labels


def generate_custom(
    submission: CustomFixtureSubmission,
    tournament_id: str,
    teams: Mapping[str, Mapping[str, Any]],
    venue: Optional[Mapping[str, Any]] = None,
) -> Fixture:
    """Build one hand-entered fixture."""
    day = submission.validate()
    fixture: Fixture = {
        "tournamentId": tournament_id,
        "matchType": submission.match_type,
        "matchTypeLabel": CATEGORY_LABELS[submission.match_type],
        "team1": submission.team1,
        "team2": submission.team2,
        "team1Name": _team_name(teams, submission.team1),
        "team2Name": _team_name(teams, submission.team2),
        "date": to_timestamp(day),
        "time": submission.time,
        "pool": submission.pool or None,
        "court": submission.court or None,
        "player1Team1": submission.player1_team1,
        "player2Team1": submission.player2_team1,
        "player1Team2": submission.player1_team2,
        "player2Team2": submission.player2_team2,
        "youtubeLink": submission.youtube_link,
        "status": STATUS_SCHEDULED,
        "fixtureType": FIXTURE_CUSTOM,
    }
    fixture.update(_venue_fields(venue))  # type: ignore[typeddict-item]
    return fixture


def _generate_tie(
    submission: TieSubmission,
    tournament_id: str,
    teams: Mapping[str, Mapping[str, Any]],
    legs: Sequence[str],
    fixture_type: str,
    now: datetime.datetime,
    venue: Optional[Mapping[str, Any]],
    keep_pool_and_court: bool,
) -> TiePlan:
    day = submission.validate()
    group_id = make_group_id(submission.team1, submission.team2, now)
    shared: dict[str, Any] = {
        "tournamentId": tournament_id,
        "team1": submission.team1,
        "team2": submission.team2,
        "team1Name": _team_name(teams, submission.team1),
        "team2Name": _team_name(teams, submission.team2),
        "date": to_timestamp(day),
        "time": submission.time or "",
        "pool": (submission.pool or "") if keep_pool_and_court else "",
        "court": (submission.court or "") if keep_pool_and_court else "",
        "status": STATUS_SCHEDULED,
        "fixtureType": fixture_type,
        "fixtureGroupId": group_id,
        **_venue_fields(venue),
    }

    records: list[Fixture] = []
    for index, (key, label) in enumerate(zip(legs, leg_labels(legs))):
        leg = dict(shared)
        leg.update(
            {
                "matchType": key,
                "matchTypeLabel": label,
                "matchNumber": index + 1,
                "player1Team1": "",
                "player2Team1": "",
                "player1Team2": "",
                "player2Team2": "",
            }
        )
        records.append(leg)  # type: ignore[arg-type]

    decider = dict(shared)
    decider.update(
        {
            "matchType": TIE_DECIDER,
            "matchTypeLabel": CATEGORY_LABELS[TIE_DECIDER],
            "matchNumber": len(legs) + 1,
            "team1Players": [],
            "team2Players": [],
        }
    )
    return TiePlan(group_id=group_id, legs=records, decider=decider)  # type: ignore[arg-type]


def generate_game_breaker(
    submission: TieSubmission,
    tournament_id: str,
    teams: Mapping[str, Mapping[str, Any]],
    now: datetime.datetime,
    venue: Optional[Mapping[str, Any]] = None,
) -> TiePlan:
    """Six category legs plus the tie-decider as match 7."""
    return _generate_tie(
        submission,
        tournament_id,
        teams,
        GAME_BREAKER_LEGS,
        FIXTURE_GAME_BREAKER,
        now,
        venue,
        keep_pool_and_court=True,
    )


def generate_mini_game_breaker(
    submission: TieSubmission,
    tournament_id: str,
    teams: Mapping[str, Mapping[str, Any]],
    now: datetime.datetime,
    venue: Optional[Mapping[str, Any]] = None,
) -> TiePlan:
    """Four doubles legs plus the tie-decider as match 5; no pool or court."""
    return _generate_tie(
        submission,
        tournament_id,
        teams,
        MINI_GAME_BREAKER_LEGS,
        FIXTURE_MINI_GAME_BREAKER,
        now,
        venue,
        keep_pool_and_court=False,
    )


def _validate_pools(pools: Mapping[str, Sequence[str]]) -> None:
    if not pools:
        raise ValidationError("At least one pool is required.")
    assigned: set[str] = set()
    for name, members in pools.items():
        if not name or not name.strip():
            raise ValidationError("Every pool needs a name.")
        if len(members) < 2:
            raise ValidationError(f"{name} needs at least two teams.")
        for team_id in members:
            if team_id in assigned:
                raise ValidationError("A team can only be placed in one pool.")
            assigned.add(team_id)


def generate_round_robin(
    pools: Mapping[str, Sequence[str]],
    categories: Sequence[Category],
    tournament_id: str,
    teams: Mapping[str, Mapping[str, Any]],
    day: datetime.date,
    time: str = DEFAULT_FIXTURE_TIME,
) -> list[Fixture]:
    """Every pair within a pool plays once per enabled category.

    Pairs follow pool order with no reverse fixtures; categories keep the
    order given. Round-robin fixtures carry no ``fixtureGroupId``.
    """
    _validate_pools(pools)
    if not categories:
        raise ValidationError("The tournament has no enabled categories.")

    fixtures: list[Fixture] = []
    for pool_name, members in pools.items():
        for team1, team2 in combinations(members, 2):
            for category in categories:
                fixtures.append(
                    {
                        "tournamentId": tournament_id,
                        "matchType": category["key"],
                        "matchTypeLabel": category["label"],
                        "team1": team1,
                        "team2": team2,
                        "team1Name": _team_name(teams, team1),
                        "team2Name": _team_name(teams, team2),
                        "date": to_timestamp(day),
                        "time": time,
                        "pool": pool_name,
                        "court": None,
                        "player1Team1": "",
                        "player2Team1": "",
                        "player1Team2": "",
                        "player2Team2": "",
                        "status": STATUS_SCHEDULED,
                        "fixtureType": FIXTURE_ROUND_ROBIN,
                    }
                )
    return fixtures


def playoff_name(stage: str, number: int, count: int) -> str:
    label = PLAYOFF_STAGE_LABELS[stage]
    return f"{label} {number}" if count > 1 else label


def generate_playoff_bracket(
    tournament_id: str,
    day: datetime.date,
    time: str = DEFAULT_FIXTURE_TIME,
) -> list[Fixture]:
    """Eight fixed bracket slots with unresolved participants."""
    fixtures: list[Fixture] = []
    for stage, count in PLAYOFF_SLOTS:
        for number in range(1, count + 1):
            fixtures.append(
                {
                    "tournamentId": tournament_id,
                    "matchType": PLAYOFF_CATEGORY,
                    "matchTypeLabel": CATEGORY_LABELS[PLAYOFF_CATEGORY],
                    **unresolved_sides(),
                    "date": to_timestamp(day),
                    "time": time,
                    "pool": None,
                    "court": None,
                    "player1Team1": "",
                    "player2Team1": "",
                    "player1Team2": "",
                    "player2Team2": "",
                    "status": STATUS_SCHEDULED,
                    "fixtureType": FIXTURE_PLAYOFF,
                    "matchNumber": len(fixtures) + 1,
                    "playoffStage": stage,
                    "playoffNumber": number,
                    "playoffName": playoff_name(stage, number, count),
                }
            )
    return fixtures
