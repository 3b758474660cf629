"""Caller identity and role resolution."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional

from fixtureboard.core.constants import (
    ROLE_SUPER_ADMIN,
    ROLE_TEAM_ADMIN,
    ROLE_VIEWER,
)


@dataclass(frozen=True)
class Caller:
    """The user on whose behalf an engine operation runs."""

    uid: str
    role: str = ROLE_VIEWER
    email: Optional[str] = None
    team_id: Optional[str] = None
    team_name: Optional[str] = None

    @property
    def is_super_admin(self) -> bool:
        return self.role == ROLE_SUPER_ADMIN

    @property
    def is_team_admin(self) -> bool:
        return self.role == ROLE_TEAM_ADMIN

    def owns_side(self, fixture: dict[str, Any]) -> Optional[str]:
        """Return "team1" or "team2" for the side the caller administers."""
        if not self.is_team_admin or not self.team_id:
            return None
        if fixture.get("team1") == self.team_id:
            return "team1"
        if fixture.get("team2") == self.team_id:
            return "team2"
        return None

    @classmethod
    def from_user(
        cls, user: dict[str, Any], teams: Iterable[dict[str, Any]] = ()
    ) -> Caller:
        """Build a caller from a user document and the tournament's teams."""
        uid = user.get("uid", "")
        email = user.get("email")
        if user.get("isSuperAdmin"):
            return cls(uid=uid, role=ROLE_SUPER_ADMIN, email=email)
        if user.get("isTeamAdmin"):
            team = find_admin_team(user, teams)
            return cls(
                uid=uid,
                role=ROLE_TEAM_ADMIN,
                email=email,
                team_id=team.get("id") if team else None,
                team_name=team.get("name") if team else None,
            )
        return cls(uid=uid, role=ROLE_VIEWER, email=email)


def find_admin_team(
    user: dict[str, Any], teams: Iterable[dict[str, Any]]
) -> Optional[dict[str, Any]]:
    """Find the team administered by ``user``, matching email, uid or team name."""
    email = (user.get("email") or "").lower()
    uid = user.get("uid")
    team_name = (user.get("teamName") or "").lower()
    for team in teams:
        if email and (team.get("adminEmail") or "").lower() == email:
            return team
        if uid and team.get("adminUid") == uid:
            return team
        if team_name and (team.get("name") or "").lower() == team_name:
            return team
    return None
