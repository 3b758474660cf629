"""Service layer for fixture generation and lifecycle operations."""

from __future__ import annotations

import datetime
import logging
from typing import TYPE_CHECKING, Any, Mapping, Optional, Sequence

from firebase_admin import firestore

from fixtureboard.core.constants import (
    DEFAULT_FIXTURE_TIME,
    EDIT_DEADLINE_MINUTES,
    FIXTURE_PLAYOFF,
    FIXTURE_ROUND_ROBIN,
    MAX_MATCHES_PER_PLAYER,
    PLAYER_SLOTS,
    TIE_DECIDER,
    TIE_DECIDER_MIN_PLAYERS,
)
from fixtureboard.errors import (
    AuthorizationError,
    DuplicateResourceError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from fixtureboard.roster.services import RosterService

from . import generators
from .eligibility import (
    SIDES,
    can_edit_fixture,
    check_assignment,
    deadline_countdown,
    players_with_availability,
    require_edit_access,
    side_slots,
)
from .models import (
    Assigned,
    CustomFixtureSubmission,
    FixtureEdit,
    TieSubmission,
    stored_team,
    team_slot,
    unresolved_sides,
)
from .projection import is_tie_leg
from .repository import FixtureRepository
from .utils import date_key, parse_date, to_date, to_timestamp

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

    from fixtureboard.auth.models import Caller

    from .projection import FixtureBoard


def _require_super_admin(caller: Caller, action: str) -> None:
    if not caller.is_super_admin:
        raise AuthorizationError(f"Only super admins can {action}.")


def _stamp_created(records: Sequence[dict[str, Any]], caller: Caller) -> list[dict[str, Any]]:
    return [
        {**record, "createdBy": caller.uid, "createdAt": firestore.SERVER_TIMESTAMP}
        for record in records
    ]


def _attach_ids(
    records: Sequence[dict[str, Any]], ids: Sequence[str]
) -> list[dict[str, Any]]:
    return [{**record, "id": fixture_id} for record, fixture_id in zip(records, ids)]


class FixtureService:
    """Handles business logic and data access for fixtures."""

    @staticmethod
    def _teams_map(tournament_id: str, db: Client) -> dict[str, dict[str, Any]]:
        teams = RosterService.get_teams_by_tournament(tournament_id, db)
        return {team["id"]: team for team in teams}

    @staticmethod
    def _venue(venue_id: Optional[str], db: Client) -> Optional[dict[str, Any]]:
        if not venue_id:
            return None
        for venue in RosterService.get_venues(db):
            if venue["id"] == venue_id:
                return venue
        raise NotFoundError("Venue not found.")

    @staticmethod
    def load_fixtures(
        tournament_id: str, caller: Caller, db: Client | None = None
    ) -> list[dict[str, Any]]:
        """Fetch the tournament's fixtures visible to the caller."""
        repo = FixtureRepository(db)
        if caller.is_team_admin:
            if not caller.team_id:
                return []
            return repo.query_by_tournament_and_team(tournament_id, caller.team_id)
        return repo.query_by_tournament(tournament_id)

    @staticmethod
    def fixture_detail(
        fixture_id: str,
        caller: Caller,
        now: Optional[datetime.datetime] = None,
        deadline_minutes: int = EDIT_DEADLINE_MINUTES,
        db: Client | None = None,
    ) -> dict[str, Any]:
        """A fixture together with its deadline countdown and edit access."""
        now = now or datetime.datetime.now()
        fixture = FixtureRepository(db).get_fixture(fixture_id)
        if caller.is_team_admin and caller.owns_side(fixture) is None:
            raise AuthorizationError("You can only view fixtures involving your team.")
        return {
            "fixture": fixture,
            "countdown": deadline_countdown(fixture, now, deadline_minutes),
            "canEdit": can_edit_fixture(caller, fixture, now, deadline_minutes),
        }

    @staticmethod
    def create_custom(
        tournament_id: str,
        submission: CustomFixtureSubmission,
        caller: Caller,
        db: Client | None = None,
        board: FixtureBoard | None = None,
    ) -> dict[str, Any]:
        """Create one hand-entered fixture."""
        _require_super_admin(caller, "create fixtures")
        repo = FixtureRepository(db)
        teams = FixtureService._teams_map(tournament_id, repo.db)
        venue = FixtureService._venue(submission.venue_id, repo.db)
        record = generators.generate_custom(submission, tournament_id, teams, venue)
        [record] = _stamp_created([record], caller)

        fixture_id = repo.insert_fixture(record)
        fixture = {**record, "id": fixture_id}
        if board is not None:
            board.apply_insert([fixture])
        return fixture

    @staticmethod
    def _write_tie(
        repo: FixtureRepository, plan: generators.TiePlan, caller: Caller
    ) -> list[dict[str, Any]]:
        """Write the legs, then the decider once every leg is stored."""
        legs = _stamp_created(plan.legs, caller)
        [decider] = _stamp_created([plan.decider], caller)
        leg_ids = repo.insert_many_fixtures(legs)
        try:
            decider_id = repo.insert_fixture(decider)
        except PersistenceError as e:
            raise PersistenceError(
                "Failed to create the tie-decider match.", written_ids=leg_ids
            ) from e
        logging.info(f"Created tie {plan.group_id} with {len(leg_ids) + 1} fixtures.")
        return _attach_ids([*legs, decider], [*leg_ids, decider_id])

    @staticmethod
    def generate_game_breaker(
        tournament_id: str,
        submission: TieSubmission,
        caller: Caller,
        now: Optional[datetime.datetime] = None,
        db: Client | None = None,
        board: FixtureBoard | None = None,
    ) -> list[dict[str, Any]]:
        """Create a six-leg Game Breaker tie with its decider."""
        _require_super_admin(caller, "create fixtures")
        repo = FixtureRepository(db)
        plan = generators.generate_game_breaker(
            submission,
            tournament_id,
            FixtureService._teams_map(tournament_id, repo.db),
            now or datetime.datetime.now(),
            FixtureService._venue(submission.venue_id, repo.db),
        )
        fixtures = FixtureService._write_tie(repo, plan, caller)
        if board is not None:
            board.apply_insert(fixtures)
        return fixtures

    @staticmethod
    def generate_mini_game_breaker(
        tournament_id: str,
        submission: TieSubmission,
        caller: Caller,
        now: Optional[datetime.datetime] = None,
        db: Client | None = None,
        board: FixtureBoard | None = None,
    ) -> list[dict[str, Any]]:
        """Create a four-leg Mini Game Breaker tie with its decider."""
        _require_super_admin(caller, "create fixtures")
        repo = FixtureRepository(db)
        plan = generators.generate_mini_game_breaker(
            submission,
            tournament_id,
            FixtureService._teams_map(tournament_id, repo.db),
            now or datetime.datetime.now(),
            FixtureService._venue(submission.venue_id, repo.db),
        )
        fixtures = FixtureService._write_tie(repo, plan, caller)
        if board is not None:
            board.apply_insert(fixtures)
        return fixtures

    @staticmethod
    def generate_round_robin(
        tournament_id: str,
        pools: Mapping[str, Sequence[str]],
        caller: Caller,
        time: str = DEFAULT_FIXTURE_TIME,
        db: Client | None = None,
        board: FixtureBoard | None = None,
    ) -> list[dict[str, Any]]:
        """Create every pool pairing once per enabled category."""
        _require_super_admin(caller, "create fixtures")
        repo = FixtureRepository(db)
        tournament = RosterService.get_tournament(tournament_id, repo.db)
        teams = FixtureService._teams_map(tournament_id, repo.db)
        for members in pools.values():
            for team_id in members:
                if team_id not in teams:
                    raise NotFoundError(f"Team {team_id} not found.")

        day = to_date(tournament.get("startDate")) or datetime.date.today()
        records = generators.generate_round_robin(
            pools,
            RosterService.enabled_categories(tournament),
            tournament_id,
            teams,
            day,
            time,
        )
        records = _stamp_created(records, caller)
        ids = repo.insert_many_fixtures(records)
        logging.info(
            f"Created {len(ids)} round robin fixtures for tournament {tournament_id}."
        )
        fixtures = _attach_ids(records, ids)
        if board is not None:
            board.apply_insert(fixtures)
        return fixtures

    @staticmethod
    def generate_playoffs(
        tournament_id: str,
        caller: Caller,
        time: str = DEFAULT_FIXTURE_TIME,
        db: Client | None = None,
        board: FixtureBoard | None = None,
    ) -> list[dict[str, Any]]:
        """Create the eight playoff slots, once per tournament."""
        _require_super_admin(caller, "create fixtures")
        repo = FixtureRepository(db)
        tournament = RosterService.get_tournament(tournament_id, repo.db)
        if repo.query_by_type(tournament_id, FIXTURE_PLAYOFF):
            raise DuplicateResourceError("Playoff fixtures already exist.")

        day = (
            to_date(tournament.get("endDate"))
            or to_date(tournament.get("startDate"))
            or datetime.date.today()
        )
        records = _stamp_created(
            generators.generate_playoff_bracket(tournament_id, day, time), caller
        )
        ids = repo.insert_many_fixtures(records)
        logging.info(f"Created playoff bracket for tournament {tournament_id}.")
        fixtures = _attach_ids(records, ids)
        if board is not None:
            board.apply_insert(fixtures)
        return fixtures

    @staticmethod
    def _eligibility_context(
        repo: FixtureRepository, fixture: dict[str, Any]
    ) -> list[dict[str, Any]]:
        if is_tie_leg(fixture):
            return repo.query_by_group(
                fixture["tournamentId"], fixture["fixtureGroupId"]
            )
        if fixture.get("fixtureType") == FIXTURE_ROUND_ROBIN:
            return repo.query_by_pairing(
                fixture["tournamentId"],
                fixture.get("pool"),
                fixture.get("team1", ""),
                fixture.get("team2", ""),
            )
        return [fixture]

    @staticmethod
    def _team_players(
        repo: FixtureRepository, fixture: dict[str, Any], side: str
    ) -> list[dict[str, Any]]:
        slot = team_slot(fixture.get(side))
        if not isinstance(slot, Assigned):
            return []
        team = RosterService.get_team(slot.team_id, repo.db)
        players = RosterService.get_players_by_tournament(
            fixture["tournamentId"], repo.db
        )
        return RosterService.get_team_players(team, players)

    @staticmethod
    def _scheduling_payload(
        repo: FixtureRepository,
        existing: dict[str, Any],
        edit: FixtureEdit,
        caller: Caller,
    ) -> dict[str, Any]:
        changes = edit.scheduling_changes()
        if not caller.is_super_admin:
            for key, value in changes.items():
                current = existing.get(key)
                if key == "date":
                    same = date_key(value) == date_key(current)
                else:
                    same = (value or None) == (current or None)
                if not same:
                    raise AuthorizationError(
                        "Team admins can only change their own players."
                    )
            return {}

        payload: dict[str, Any] = {}
        if "date" in changes:
            payload["date"] = to_timestamp(parse_date(changes["date"]))
        for key in ("time", "pool", "court", "youtubeLink"):
            if key in changes:
                payload[key] = changes[key]
        if "venueId" in changes:
            venue = FixtureService._venue(changes["venueId"], repo.db)
            payload["venueId"] = venue["id"] if venue else None
            payload["venueName"] = venue.get("name") if venue else None

        team_changes = {
            side: changes[side]
            for side in SIDES
            if side in changes and changes[side] != existing.get(side)
        }
        if team_changes:
            if existing.get("fixtureType") != FIXTURE_PLAYOFF:
                raise ValidationError("Teams can only be assigned on playoff fixtures.")
            teams = FixtureService._teams_map(existing["tournamentId"], repo.db)
            for side, team_id in team_changes.items():
                slot = team_slot(team_id)
                name = stored_team(slot)
                if isinstance(slot, Assigned):
                    if slot.team_id not in teams:
                        raise NotFoundError(f"Team {slot.team_id} not found.")
                    name = teams[slot.team_id].get("name", "")
                payload[side] = stored_team(slot)
                payload[f"{side}Name"] = name
            team1 = team_slot(payload.get("team1", existing.get("team1")))
            team2 = team_slot(payload.get("team2", existing.get("team2")))
            if isinstance(team1, Assigned) and team1 == team2:
                raise ValidationError("Team 1 and Team 2 cannot be the same.")
        return payload

    @staticmethod
    def _player_payload(  # noqa: PLR0913
        repo: FixtureRepository,
        existing: dict[str, Any],
        edit: FixtureEdit,
        caller: Caller,
        max_matches: int,
        decider_min_players: int,
    ) -> dict[str, Any]:
        own_side = caller.owns_side(existing)
        payload: dict[str, Any] = {}
        is_decider = existing.get("matchType") == TIE_DECIDER

        unknown = set(edit.players) - set(PLAYER_SLOTS)
        if unknown:
            raise ValidationError(f"Unknown player slot: {sorted(unknown)[0]}.")
        if is_decider and any(edit.players.values()):
            raise ValidationError("The tie-decider uses player rosters, not slots.")

        context: Optional[list[dict[str, Any]]] = None
        for side in SIDES:
            first, second = side_slots(side)
            side_edit = {
                s: edit.players[s] or "" for s in (first, second) if s in edit.players
            }
            if not side_edit or is_decider:
                continue
            new_slots = {
                first: side_edit.get(first, existing.get(first) or ""),
                second: side_edit.get(second, existing.get(second) or ""),
            }
            if all(new_slots[s] == (existing.get(s) or "") for s in new_slots):
                continue
            if not caller.is_super_admin and own_side != side:
                raise AuthorizationError("You can only assign players to your own team.")
            if context is None:
                context = FixtureService._eligibility_context(repo, existing)
            check_assignment(
                caller,
                existing,
                side,
                new_slots,
                FixtureService._team_players(repo, existing, side),
                context,
                max_matches,
            )
            payload.update(new_slots)

        rosters = {"team1": edit.team1_players, "team2": edit.team2_players}
        for side, roster in rosters.items():
            if roster is None:
                continue
            if not is_decider:
                raise ValidationError("Player rosters only apply to the tie-decider.")
            names = [name for name in roster if name]
            if names == list(existing.get(f"{side}Players") or []):
                continue
            if not caller.is_super_admin and own_side != side:
                raise AuthorizationError("You can only assign players to your own team.")
            if names and len(names) < decider_min_players:
                raise ValidationError(
                    f"Select at least {decider_min_players} players for each team."
                )
            if len(set(names)) != len(names):
                raise ValidationError("A player can only be listed once.")
            if not caller.is_super_admin:
                on_team = {
                    p.get("name")
                    for p in FixtureService._team_players(repo, existing, side)
                }
                missing = [name for name in names if name not in on_team]
                if missing:
                    raise ValidationError(f"{missing[0]} is not on this team.")
            payload[f"{side}Players"] = names
        return payload

    @staticmethod
    def update_fixture(  # noqa: PLR0913
        fixture_id: str,
        edit: FixtureEdit,
        caller: Caller,
        now: Optional[datetime.datetime] = None,
        db: Client | None = None,
        board: FixtureBoard | None = None,
        deadline_minutes: int = EDIT_DEADLINE_MINUTES,
        max_matches: int = MAX_MATCHES_PER_PLAYER,
        decider_min_players: int = TIE_DECIDER_MIN_PLAYERS,
    ) -> dict[str, Any]:
        """Apply an edit, re-checking the caller's access and player rules."""
        now = now or datetime.datetime.now()
        repo = FixtureRepository(db)
        existing = repo.get_fixture(fixture_id)
        edit.validate()
        require_edit_access(caller, existing, now, deadline_minutes)

        payload = FixtureService._scheduling_payload(repo, existing, edit, caller)
        payload.update(
            FixtureService._player_payload(
                repo, existing, edit, caller, max_matches, decider_min_players
            )
        )
        if not payload:
            return existing

        repo.update_fixture(
            fixture_id, {**payload, "updatedAt": firestore.SERVER_TIMESTAMP}
        )
        updated = {**existing, **payload, "updatedAt": now}
        if board is not None:
            board.apply_update(updated)
        return updated

    @staticmethod
    def delete_fixture(
        fixture_id: str,
        caller: Caller,
        confirmed: bool = False,
        db: Client | None = None,
        board: FixtureBoard | None = None,
    ) -> int:
        """Delete a fixture and return how many fixtures were removed.

        A leg of a tie takes its whole group with it, so the same confirmation
        as ``delete_group`` is required.
        """
        _require_super_admin(caller, "delete fixtures")
        repo = FixtureRepository(db)
        existing = repo.get_fixture(fixture_id)
        if is_tie_leg(existing):
            return FixtureService.delete_group(
                existing["tournamentId"],
                existing["fixtureGroupId"],
                caller,
                confirmed=confirmed,
                db=repo.db,
                board=board,
            )
        repo.delete_fixture(fixture_id)
        if board is not None:
            board.apply_delete(fixture_id)
        return 1

    @staticmethod
    def delete_group(
        tournament_id: str,
        group_id: str,
        caller: Caller,
        confirmed: bool = False,
        db: Client | None = None,
        board: FixtureBoard | None = None,
    ) -> int:
        """Delete every fixture of a tie and return how many were removed.

        Deletes are committed in write batches, so a tie larger than one batch
        is not removed atomically.
        """
        _require_super_admin(caller, "delete fixture groups")
        if not confirmed:
            raise ValidationError(
                "Deleting a fixture group removes all of its matches; confirm to continue."
            )
        repo = FixtureRepository(db)
        members = repo.query_by_group(tournament_id, group_id)
        if not members:
            raise NotFoundError("Fixture group not found.")
        repo.delete_many_fixtures([member["id"] for member in members])
        logging.info(f"Deleted fixture group {group_id} ({len(members)} fixtures).")
        if board is not None:
            board.apply_group_delete(group_id)
        return len(members)

    @staticmethod
    def reset_playoff_fixture(
        fixture_id: str,
        caller: Caller,
        now: Optional[datetime.datetime] = None,
        db: Client | None = None,
        board: FixtureBoard | None = None,
    ) -> dict[str, Any]:
        """Return a playoff slot to unresolved teams and empty player slots."""
        _require_super_admin(caller, "reset playoff fixtures")
        repo = FixtureRepository(db)
        existing = repo.get_fixture(fixture_id)
        if existing.get("fixtureType") != FIXTURE_PLAYOFF:
            raise ValidationError("Only playoff fixtures can be reset.")

        payload: dict[str, Any] = {
            **unresolved_sides(),
            **{slot: "" for slot in PLAYER_SLOTS},
        }
        repo.update_fixture(
            fixture_id, {**payload, "updatedAt": firestore.SERVER_TIMESTAMP}
        )
        updated = {**existing, **payload, "updatedAt": now or datetime.datetime.now()}
        if board is not None:
            board.apply_update(updated)
        return updated

    @staticmethod
    def eligible_players(  # noqa: PLR0913
        fixture_id: str,
        side: str,
        position: str,
        caller: Caller,
        search: str = "",
        age_filter: str = "",
        gender_filter: str = "",
        slots: Optional[dict[str, str]] = None,
        max_matches: int = MAX_MATCHES_PER_PLAYER,
        db: Client | None = None,
    ) -> list[dict[str, Any]]:
        """Team players for a slot, each marked available or not with a reason."""
        if side not in SIDES:
            raise ValidationError("Unknown team side.")
        repo = FixtureRepository(db)
        fixture = repo.get_fixture(fixture_id)
        if not caller.is_super_admin and caller.owns_side(fixture) != side:
            raise AuthorizationError("You can only assign players to your own team.")
        merged = {**fixture, **(slots or {})}
        return players_with_availability(
            FixtureService._team_players(repo, fixture, side),
            fixture,
            side,
            position,
            FixtureService._eligibility_context(repo, fixture),
            caller,
            slots=merged,
            search=search,
            age_filter=age_filter,
            gender_filter=gender_filter,
            max_matches=max_matches,
        )
