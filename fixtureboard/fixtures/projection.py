"""Derived views over a tournament's fixtures.

Nothing here mutates the fixtures it is given. ``FixtureBoard`` keeps the
date buckets of a loaded fixture set in step with lifecycle operations.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from fixtureboard.core.constants import (
    FIXTURE_CUSTOM,
    FIXTURE_PLAYOFF,
    FIXTURE_ROUND_ROBIN,
    FIXTURE_TYPE_LABELS,
    PLAYER_SLOTS,
    PLAYOFF_STAGE_LABELS,
    PLAYOFF_STAGES,
    STAGE_FINAL,
    STAGE_QUARTERFINAL,
    STAGE_SEMIFINAL,
    STAGE_THIRD_PLACE,
    TIE_DECIDER,
)

from .utils import date_key, date_range, to_date

_FAR_FUTURE = datetime.date.max


def _sort_day(fixture: dict[str, Any]) -> datetime.date:
    return to_date(fixture.get("date")) or _FAR_FUTURE


def bucket_by_date(fixtures: Iterable[dict[str, Any]]) -> dict[str, list[dict[str, Any]]]:
    """Group fixtures under their day key, skipping undated ones."""
    buckets: dict[str, list[dict[str, Any]]] = {}
    for fixture in fixtures:
        key = date_key(fixture.get("date"))
        if key is None:
            continue
        buckets.setdefault(key, []).append(fixture)
    return buckets


def calendar(
    tournament: dict[str, Any],
    fixtures: Iterable[dict[str, Any]],
    only_with_fixtures: bool = False,
) -> list[dict[str, Any]]:
    """One entry per tournament day with the number of fixtures on it."""
    buckets = bucket_by_date(fixtures)
    days = []
    for day in date_range(tournament.get("startDate"), tournament.get("endDate")):
        key = day.isoformat()
        count = len(buckets.get(key, []))
        if only_with_fixtures and count == 0:
            continue
        days.append({"date": key, "count": count})
    return days


def is_tie_leg(fixture: dict[str, Any]) -> bool:
    """Round-robin fixtures never join a tie, whatever they carry."""
    return bool(fixture.get("fixtureGroupId")) and (
        fixture.get("fixtureType") != FIXTURE_ROUND_ROBIN
    )


def tie_groups(fixtures: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Bucket tie legs by (day, group id), sorted chronologically.

    Member order follows the input; callers sort by ``matchNumber`` to render.
    """
    groups: dict[tuple[str, str], dict[str, Any]] = {}
    for fixture in fixtures:
        if not is_tie_leg(fixture):
            continue
        key = (date_key(fixture.get("date")) or "", fixture["fixtureGroupId"])
        group = groups.get(key)
        if group is None:
            group = {
                "id": fixture["fixtureGroupId"],
                "team1": fixture.get("team1"),
                "team2": fixture.get("team2"),
                "team1Name": fixture.get("team1Name"),
                "team2Name": fixture.get("team2Name"),
                "date": fixture.get("date"),
                "dateKey": key[0],
                "fixtureType": fixture.get("fixtureType"),
                "matches": [],
                "matchCount": 0,
                "hasTieDecider": False,
            }
            groups[key] = group
        group["matches"].append(fixture)
        group["matchCount"] += 1
        if fixture.get("matchType") == TIE_DECIDER:
            group["hasTieDecider"] = True
    return sorted(groups.values(), key=_sort_day)


def flat_fixtures(fixtures: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Custom and round-robin fixtures sorted by day, then HH:MM time."""
    listed = [
        f
        for f in fixtures
        if f.get("fixtureType") in (FIXTURE_CUSTOM, FIXTURE_ROUND_ROBIN)
    ]
    return sorted(listed, key=lambda f: (_sort_day(f), f.get("time") or ""))


def playoff_stage(fixture: dict[str, Any]) -> Optional[str]:
    """Resolve a playoff fixture's stage from its stage field or name."""
    stage = fixture.get("playoffStage")
    if stage == "thirdplace":
        return STAGE_THIRD_PLACE
    if stage in PLAYOFF_STAGES:
        return stage
    name = (fixture.get("playoffName") or "").lower()
    if "quarter" in name:
        return STAGE_QUARTERFINAL
    if "semi" in name:
        return STAGE_SEMIFINAL
    if "third" in name:
        return STAGE_THIRD_PLACE
    if "final" in name:
        return STAGE_FINAL
    return None


def playoff_bracket(fixtures: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Playoff fixtures in bracket order: stage, then slot number."""
    playoffs = [f for f in fixtures if f.get("fixtureType") == FIXTURE_PLAYOFF]

    def order(fixture: dict[str, Any]) -> tuple[int, int]:
        stage = playoff_stage(fixture)
        rank = PLAYOFF_STAGES.index(stage) if stage else len(PLAYOFF_STAGES)
        return rank, fixture.get("playoffNumber") or 0

    return sorted(playoffs, key=order)


def playoff_display_name(fixture: dict[str, Any]) -> str:
    if fixture.get("playoffName"):
        return fixture["playoffName"]
    stage = playoff_stage(fixture)
    if stage is None:
        return fixture_type_label(fixture.get("fixtureType"))
    label = PLAYOFF_STAGE_LABELS[stage]
    number = fixture.get("playoffNumber")
    return f"{label} {number}" if number else label


def fixture_type_label(fixture_type: Optional[str]) -> str:
    if fixture_type in FIXTURE_TYPE_LABELS:
        return FIXTURE_TYPE_LABELS[fixture_type]
    if fixture_type in PLAYOFF_STAGE_LABELS:
        return PLAYOFF_STAGE_LABELS[fixture_type]
    return fixture_type or "Unknown"


@dataclass
class FixtureFilter:
    """Team, venue and free-text filters shared by the list views."""

    team_id: Optional[str] = None
    venue_id: Optional[str] = None
    search: str = ""

    def _text_matches(self, fixture: dict[str, Any]) -> bool:
        needle = self.search.strip().lower()
        haystack = [fixture.get("team1Name"), fixture.get("team2Name")]
        haystack += [fixture.get(slot) for slot in PLAYER_SLOTS]
        return any(needle in (value or "").lower() for value in haystack)

    def matches_fixture(self, fixture: dict[str, Any]) -> bool:
        if self.team_id and self.team_id not in (
            fixture.get("team1"),
            fixture.get("team2"),
        ):
            return False
        if self.venue_id and fixture.get("venueId") != self.venue_id:
            return False
        if self.search.strip() and not self._text_matches(fixture):
            return False
        return True

    def matches_group(self, group: dict[str, Any]) -> bool:
        members = group.get("matches", [])
        if self.team_id and self.team_id not in (group.get("team1"), group.get("team2")):
            return False
        if self.venue_id and not any(
            m.get("venueId") == self.venue_id for m in members
        ):
            return False
        if self.search.strip():
            needle = self.search.strip().lower()
            names = [group.get("team1Name"), group.get("team2Name")]
            if not any(needle in (n or "").lower() for n in names) and not any(
                FixtureFilter(search=self.search)._text_matches(m) for m in members
            ):
                return False
        return True


def filter_fixtures(
    fixtures: Iterable[dict[str, Any]], fixture_filter: FixtureFilter
) -> list[dict[str, Any]]:
    return [f for f in fixtures if fixture_filter.matches_fixture(f)]


def filter_groups(
    groups: Iterable[dict[str, Any]], fixture_filter: FixtureFilter
) -> list[dict[str, Any]]:
    return [g for g in groups if fixture_filter.matches_group(g)]


def build_views(
    tournament: dict[str, Any],
    fixtures: list[dict[str, Any]],
    fixture_filter: Optional[FixtureFilter] = None,
    selected_date: Optional[str] = None,
) -> dict[str, Any]:
    """Assemble every view of the fixture set for one page render."""
    fixture_filter = fixture_filter or FixtureFilter()
    scoped = fixtures
    if selected_date:
        scoped = [f for f in fixtures if date_key(f.get("date")) == selected_date]
    return {
        "calendar": calendar(tournament, fixtures),
        "groups": filter_groups(tie_groups(scoped), fixture_filter),
        "fixtures": filter_fixtures(flat_fixtures(scoped), fixture_filter),
        "playoffs": [
            {**f, "displayName": playoff_display_name(f)}
            for f in filter_fixtures(playoff_bracket(scoped), fixture_filter)
        ],
        "total": len(fixtures),
    }


@dataclass
class FixtureBoard:
    """Date-bucketed fixtures of one tournament, kept in step with writes.

    Every ``apply_*`` method builds the new buckets before swapping them in,
    so a board is never left half-updated.
    """

    buckets: dict[str, list[dict[str, Any]]] = field(default_factory=dict)

    @classmethod
    def from_fixtures(cls, fixtures: Iterable[dict[str, Any]]) -> FixtureBoard:
        return cls(buckets=bucket_by_date(fixtures))

    def all(self) -> list[dict[str, Any]]:
        return [f for key in sorted(self.buckets) for f in self.buckets[key]]

    def count(self) -> int:
        return sum(len(bucket) for bucket in self.buckets.values())

    def get(self, fixture_id: str) -> Optional[dict[str, Any]]:
        for bucket in self.buckets.values():
            for fixture in bucket:
                if fixture.get("id") == fixture_id:
                    return fixture
        return None

    def groups(self) -> list[dict[str, Any]]:
        return tie_groups(self.all())

    @staticmethod
    def _without(
        buckets: dict[str, list[dict[str, Any]]], fixture_ids: set[str]
    ) -> dict[str, list[dict[str, Any]]]:
        remaining = {}
        for key, bucket in buckets.items():
            kept = [f for f in bucket if f.get("id") not in fixture_ids]
            if kept:
                remaining[key] = kept
        return remaining

    def apply_insert(self, fixtures: Iterable[dict[str, Any]]) -> None:
        fixtures = list(fixtures)
        buckets = self._without(self.buckets, {f["id"] for f in fixtures})
        for key, added in bucket_by_date(fixtures).items():
            buckets[key] = buckets.get(key, []) + added
        self.buckets = buckets

    def apply_update(self, fixture: dict[str, Any]) -> None:
        """Move a fixture to the bucket of its (possibly new) date."""
        buckets = self._without(self.buckets, {fixture["id"]})
        key = date_key(fixture.get("date"))
        if key is not None:
            buckets[key] = buckets.get(key, []) + [fixture]
        self.buckets = buckets

    def apply_delete(self, fixture_id: str) -> None:
        self.buckets = self._without(self.buckets, {fixture_id})

    def apply_group_delete(self, group_id: str) -> None:
        ids = {
            f["id"]
            for bucket in self.buckets.values()
            for f in bucket
            if f.get("fixtureGroupId") == group_id
        }
        self.buckets = self._without(self.buckets, ids)
