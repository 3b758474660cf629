"""Global constants for the fixtureboard application."""

# Collection names
TOURNAMENTS_COLLECTION = "tournaments"
TEAMS_COLLECTION = "teams"
PLAYERS_COLLECTION = "players"
VENUES_COLLECTION = "venues"
FIXTURES_COLLECTION = "fixtures"
PREFERENCES_COLLECTION = "fixturePreferences"
USERS_COLLECTION = "users"

FIRESTORE_BATCH_LIMIT = 400

# Category keys, in canonical order
MENS_SINGLES = "mensSingles"
MENS_DOUBLES = "mensDoubles"
WOMENS_SINGLES = "womensSingles"
WOMENS_DOUBLES = "womensDoubles"
MIXED_DOUBLES = "mixedDoubles"
TIE_DECIDER = "dreamBreaker"

CATEGORY_ORDER = (
    MENS_SINGLES,
    MENS_DOUBLES,
    WOMENS_SINGLES,
    WOMENS_DOUBLES,
    MIXED_DOUBLES,
)

CATEGORY_LABELS = {
    MENS_SINGLES: "Men's Singles",
    MENS_DOUBLES: "Men's Doubles",
    WOMENS_SINGLES: "Women's Singles",
    WOMENS_DOUBLES: "Women's Doubles",
    MIXED_DOUBLES: "Mixed Doubles",
    TIE_DECIDER: "Game Breaker",
}

DOUBLES_CATEGORIES = frozenset({MENS_DOUBLES, WOMENS_DOUBLES, MIXED_DOUBLES})
MENS_CATEGORIES = frozenset({MENS_SINGLES, MENS_DOUBLES})
WOMENS_CATEGORIES = frozenset({WOMENS_SINGLES, WOMENS_DOUBLES})

# Fixture types
FIXTURE_CUSTOM = "custom"
FIXTURE_GAME_BREAKER = "dreambreaker"
FIXTURE_MINI_GAME_BREAKER = "minidreambreaker"
FIXTURE_ROUND_ROBIN = "roundrobin"
FIXTURE_PLAYOFF = "playoff"

# Formats a tournament can remember as its preferred style
FIXTURE_STYLES = (
    FIXTURE_CUSTOM,
    FIXTURE_GAME_BREAKER,
    FIXTURE_MINI_GAME_BREAKER,
    FIXTURE_ROUND_ROBIN,
)

FIXTURE_TYPE_LABELS = {
    FIXTURE_CUSTOM: "Custom",
    FIXTURE_GAME_BREAKER: "Game Breaker",
    FIXTURE_MINI_GAME_BREAKER: "Mini Game Breaker",
    FIXTURE_ROUND_ROBIN: "Round Robin",
    FIXTURE_PLAYOFF: "Playoff",
}

# Playoff stages, in bracket order
STAGE_QUARTERFINAL = "quarterfinal"
STAGE_SEMIFINAL = "semifinal"
STAGE_THIRD_PLACE = "third-place"
STAGE_FINAL = "final"

PLAYOFF_STAGES = (
    STAGE_QUARTERFINAL,
    STAGE_SEMIFINAL,
    STAGE_THIRD_PLACE,
    STAGE_FINAL,
)

PLAYOFF_STAGE_LABELS = {
    STAGE_QUARTERFINAL: "Quarter Final",
    STAGE_SEMIFINAL: "Semi Final",
    STAGE_THIRD_PLACE: "Third Place",
    STAGE_FINAL: "Final",
}

PLAYOFF_SLOTS = (
    (STAGE_QUARTERFINAL, 4),
    (STAGE_SEMIFINAL, 2),
    (STAGE_THIRD_PLACE, 1),
    (STAGE_FINAL, 1),
)

# Unresolved participant marker, as stored
TBD = "TBD"

STATUS_SCHEDULED = "scheduled"

PLAYER_SLOTS = ("player1Team1", "player2Team1", "player1Team2", "player2Team2")

GENDER_MALE = "Male"
GENDER_FEMALE = "Female"

# Rule defaults, overridable through app config
EDIT_DEADLINE_MINUTES = 60
MAX_MATCHES_PER_PLAYER = 2
TIE_DECIDER_MIN_PLAYERS = 6
DEFAULT_FIXTURE_TIME = "09:00"

# Roles
ROLE_SUPER_ADMIN = "super_admin"
ROLE_TEAM_ADMIN = "team_admin"
ROLE_VIEWER = "viewer"
