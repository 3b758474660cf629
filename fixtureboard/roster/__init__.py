"""Read-only access to tournaments, teams, players and venues."""

from .models import Player, Team, Tournament, Venue
from .services import RosterService

__all__ = ["Player", "RosterService", "Team", "Tournament", "Venue"]
