"""Edit deadlines and player-assignment rules for fixture edits."""

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING, Any, Iterable, Optional

from fixtureboard.core.constants import (
    DOUBLES_CATEGORIES,
    EDIT_DEADLINE_MINUTES,
    GENDER_FEMALE,
    GENDER_MALE,
    MAX_MATCHES_PER_PLAYER,
    MENS_CATEGORIES,
    MIXED_DOUBLES,
    WOMENS_CATEGORIES,
)
from fixtureboard.errors import AuthorizationError, ValidationError

from .utils import parse_time, to_date

if TYPE_CHECKING:
    from fixtureboard.auth.models import Caller

SIDES = ("team1", "team2")
POSITIONS = ("player1", "player2")

AGE_RANGES = (
    ("under18", "Under 18", lambda age: age < 18),
    ("18-25", "18-25", lambda age: 18 <= age <= 25),
    ("26-35", "26-35", lambda age: 26 <= age <= 35),
    ("over35", "Over 35", lambda age: age > 35),
)


def slot_name(side: str, position: str) -> str:
    """``("team1", "player2")`` -> ``"player2Team1"``."""
    if side not in SIDES or position not in POSITIONS:
        raise ValidationError("Unknown player slot.")
    return f"{position}{side.capitalize()}"


def side_slots(side: str) -> tuple[str, str]:
    return slot_name(side, "player1"), slot_name(side, "player2")


def match_deadline(
    fixture: dict[str, Any], minutes: int = EDIT_DEADLINE_MINUTES
) -> Optional[datetime.datetime]:
    """Start of the match minus ``minutes``; None without both date and time."""
    day = to_date(fixture.get("date"))
    start = parse_time(fixture.get("time"))
    if day is None or start is None:
        return None
    return datetime.datetime.combine(day, start) - datetime.timedelta(minutes=minutes)


def is_deadline_passed(
    fixture: dict[str, Any],
    now: datetime.datetime,
    minutes: int = EDIT_DEADLINE_MINUTES,
) -> bool:
    deadline = match_deadline(fixture, minutes)
    if deadline is None:
        return False
    return now > deadline


def deadline_countdown(
    fixture: dict[str, Any],
    now: datetime.datetime,
    minutes: int = EDIT_DEADLINE_MINUTES,
) -> Optional[dict[str, Any]]:
    """Human readable time left before scoped edits close."""
    deadline = match_deadline(fixture, minutes)
    if deadline is None:
        return None

    remaining = int((deadline - now).total_seconds())
    if remaining <= 0:
        return {"text": "Deadline passed", "expired": True, "deadline": deadline}

    days, rest = divmod(remaining, 86400)
    hours, rest = divmod(rest, 3600)
    mins, secs = divmod(rest, 60)
    if days > 0:
        text = f"{days}d {hours}h {mins}m {secs}s"
    elif hours > 0:
        text = f"{hours}h {mins}m {secs}s"
    elif mins > 0:
        text = f"{mins}m {secs}s"
    else:
        text = f"{secs}s"
    return {"text": f"{text} until deadline", "expired": False, "deadline": deadline}


def can_edit_fixture(
    caller: Caller,
    fixture: dict[str, Any],
    now: datetime.datetime,
    minutes: int = EDIT_DEADLINE_MINUTES,
) -> bool:
    if caller.is_super_admin:
        return True
    if caller.owns_side(fixture) is None:
        return False
    return not is_deadline_passed(fixture, now, minutes)


def require_edit_access(
    caller: Caller,
    fixture: dict[str, Any],
    now: datetime.datetime,
    minutes: int = EDIT_DEADLINE_MINUTES,
) -> None:
    """Raise AuthorizationError unless the caller may edit the fixture now."""
    if caller.is_super_admin:
        return
    if not caller.is_team_admin:
        raise AuthorizationError("Only administrators can edit fixtures.")
    if caller.owns_side(fixture) is None:
        raise AuthorizationError("You can only edit fixtures involving your team.")
    if is_deadline_passed(fixture, now, minutes):
        raise AuthorizationError("The edit deadline for this match has passed.")


def player_match_count(
    player_name: str,
    team_id: str,
    fixtures: Iterable[dict[str, Any]],
    exclude_id: Optional[str] = None,
) -> int:
    """Number of fixtures in which the player fills one of the team's slots."""
    if not player_name:
        return 0
    count = 0
    for fixture in fixtures:
        if exclude_id and fixture.get("id") == exclude_id:
            continue
        for side in SIDES:
            if fixture.get(side) != team_id:
                continue
            if player_name in (fixture.get(slot) for slot in side_slots(side)):
                count += 1
                break
    return count


def in_same_category(
    player_name: str,
    team_id: str,
    match_type: str,
    fixtures: Iterable[dict[str, Any]],
    exclude_id: Optional[str] = None,
) -> bool:
    """True if the player already plays this doubles category elsewhere."""
    if not player_name or match_type not in DOUBLES_CATEGORIES:
        return False
    for fixture in fixtures:
        if exclude_id and fixture.get("id") == exclude_id:
            continue
        if fixture.get("matchType") != match_type:
            continue
        for side in SIDES:
            if fixture.get(side) == team_id and player_name in (
                fixture.get(slot) for slot in side_slots(side)
            ):
                return True
    return False


def gender_reason(
    player: dict[str, Any],
    match_type: str,
    position: str,
    partner: Optional[dict[str, Any]] = None,
) -> Optional[str]:
    """Why the player's gender rules them out of the slot, if it does."""
    gender = player.get("gender")
    if match_type in WOMENS_CATEGORIES and gender != GENDER_FEMALE:
        return "Women only match"
    if match_type in MENS_CATEGORIES and gender != GENDER_MALE:
        return "Men only match"
    if match_type == MIXED_DOUBLES and position == "player2" and partner:
        if partner.get("gender") == gender:
            return "Mixed doubles requires opposite gender"
    return None


def _find_player(players: Iterable[dict[str, Any]], name: str) -> Optional[dict[str, Any]]:
    if not name:
        return None
    for player in players:
        if player.get("name") == name:
            return player
    return None


def rule_reason(
    player: dict[str, Any],
    fixture: dict[str, Any],
    side: str,
    position: str,
    team_players: list[dict[str, Any]],
    context: list[dict[str, Any]],
    slots: Optional[dict[str, str]] = None,
    max_matches: int = MAX_MATCHES_PER_PLAYER,
) -> Optional[str]:
    """First eligibility rule the player breaks for a scoped assignment."""
    slots = slots if slots is not None else fixture
    team_id = fixture.get(side)
    name = player.get("name", "")
    match_type = fixture.get("matchType", "")

    if player_match_count(name, team_id, context, fixture.get("id")) >= max_matches:
        return f"Already in {max_matches} matches"

    first_slot = slot_name(side, "player1")
    partner = _find_player(team_players, slots.get(first_slot, ""))
    reason = gender_reason(player, match_type, position, partner)
    if reason:
        return reason

    if in_same_category(name, team_id, match_type, context, fixture.get("id")):
        return "Already in same category match"
    return None


def _other_slot_value(slots: dict[str, Any], side: str, position: str) -> str:
    other = "player2" if position == "player1" else "player1"
    return slots.get(slot_name(side, other)) or ""


def players_with_availability(  # noqa: PLR0913
    team_players: list[dict[str, Any]],
    fixture: dict[str, Any],
    side: str,
    position: str,
    context: list[dict[str, Any]],
    caller: Caller,
    slots: Optional[dict[str, str]] = None,
    search: str = "",
    age_filter: str = "",
    gender_filter: str = "",
    max_matches: int = MAX_MATCHES_PER_PLAYER,
) -> list[dict[str, Any]]:
    """Annotate each team player with ``available`` and a ``reason``."""
    slots = slots if slots is not None else fixture
    age_test = {value: test for value, _, test in AGE_RANGES}.get(age_filter)
    results = []
    for player in team_players:
        reason = ""
        age = player.get("age")
        if search and search.lower() not in (player.get("name") or "").lower():
            reason = "Does not match search"
        elif age_test and (age is None or not age_test(age)):
            reason = "Age filter"
        elif gender_filter and player.get("gender") != gender_filter:
            reason = "Gender filter"
        elif not caller.is_super_admin:
            reason = rule_reason(
                player,
                fixture,
                side,
                position,
                team_players,
                context,
                slots,
                max_matches,
            ) or ""
        if not reason and _other_slot_value(slots, side, position) == player.get("name"):
            reason = "Already selected in other position"
        results.append({**player, "available": not reason, "reason": reason})
    return results


def check_assignment(  # noqa: PLR0913
    caller: Caller,
    fixture: dict[str, Any],
    side: str,
    new_slots: dict[str, str],
    team_players: list[dict[str, Any]],
    context: list[dict[str, Any]],
    max_matches: int = MAX_MATCHES_PER_PLAYER,
) -> None:
    """Validate the side's slot values a caller is about to save."""
    first, second = side_slots(side)
    if new_slots.get(first) and new_slots.get(first) == new_slots.get(second):
        raise ValidationError("The same player cannot fill both positions.")
    if caller.is_super_admin:
        return

    first_changed = (new_slots.get(first) or "") != (fixture.get(first) or "")
    for slot, position in ((first, "player1"), (second, "player2")):
        name = new_slots.get(slot) or ""
        if not name:
            continue
        # an unchanged second slot is rechecked when its partner changed
        unchanged = name == fixture.get(slot)
        if unchanged and not (position == "player2" and first_changed):
            continue
        player = _find_player(team_players, name)
        if player is None:
            raise ValidationError(f"{name} is not on this team.")
        reason = rule_reason(
            player, fixture, side, position, team_players, context, new_slots, max_matches
        )
        if reason:
            raise ValidationError(f"{name} cannot be selected: {reason}.")


def age_ranges(players: Iterable[dict[str, Any]]) -> list[dict[str, str]]:
    """Age-range filter options that at least one player falls into."""
    ages = [p["age"] for p in players if isinstance(p.get("age"), (int, float))]
    return [
        {"value": value, "label": label}
        for value, label, test in AGE_RANGES
        if any(test(age) for age in ages)
    ]


def genders(players: Iterable[dict[str, Any]]) -> list[dict[str, str]]:
    found = sorted({p["gender"] for p in players if p.get("gender")})
    return [{"value": g, "label": g} for g in found]
