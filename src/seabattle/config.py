"""Central configuration for runtime-tunable parameters.

Rule defaults can be overridden via environment variables so that a
deployment can change, say, the turn clock without touching code, while the
automated test-suite keeps the stock values.  Per-match overrides passed to
``create_match`` always win over these defaults.
"""

from __future__ import annotations

import os


# ===========================================================================
# Board Geometry
# ===========================================================================
# The grid is always 10x10; every coordinate satisfies 0 <= x, y < BOARD_SIZE.
BOARD_SIZE: int = 10

# Human notation: column letters A-J, rows 1-10.
COLUMN_LETTERS: str = "ABCDEFGHIJ"


# ===========================================================================
# Fleet Composition
# ===========================================================================
# Ship length -> number of ships of that length.  Not overridable.
FLEET_COMPOSITION: dict[int, int] = {1: 4, 2: 3, 3: 2, 4: 1}
FLEET_SIZE: int = sum(FLEET_COMPOSITION.values())
MIN_SHIP_LENGTH: int = min(FLEET_COMPOSITION)
MAX_SHIP_LENGTH: int = max(FLEET_COMPOSITION)

# Placement order used by the random generator (longest first).
FLEET_LENGTHS: list[int] = sorted(
    (length for length, count in FLEET_COMPOSITION.items() for _ in range(count)),
    reverse=True,
)


# ===========================================================================
# Default Match Rules
# ===========================================================================
# SEABATTLE_ALLOW_TOUCHING: If "1", ships may touch (including diagonally).
#   Defaults to "0".
#   Example: export SEABATTLE_ALLOW_TOUCHING=1
ALLOW_TOUCHING: bool = os.getenv("SEABATTLE_ALLOW_TOUCHING", "0") == "1"

# SEABATTLE_REPEAT_TURN_ON_HIT: If "1", a player who hits keeps the turn.
#   Defaults to "1".
#   Example: export SEABATTLE_REPEAT_TURN_ON_HIT=0
REPEAT_TURN_ON_HIT: bool = os.getenv("SEABATTLE_REPEAT_TURN_ON_HIT", "1") == "1"

# SEABATTLE_TURN_SECONDS: Declarative per-turn time limit (enforced by callers).
#   Defaults to 45 seconds.
TURN_SECONDS: int = int(os.getenv("SEABATTLE_TURN_SECONDS", "45"))

# SEABATTLE_PLACEMENT_SECONDS: Declarative placement time limit (enforced by callers).
#   Defaults to 60 seconds.
PLACEMENT_SECONDS: int = int(os.getenv("SEABATTLE_PLACEMENT_SECONDS", "60"))


# ===========================================================================
# Random Fleet Generation
# ===========================================================================
# Whole-fleet attempts before giving up with RANDOM_PLACEMENT_FAILED.
RANDOM_PLACEMENT_ATTEMPTS: int = 500

# Tries per individual ship inside a single fleet attempt.
SHIP_PLACEMENT_ATTEMPTS: int = 200


# ===========================================================================
# Debugging and Logging
# ===========================================================================
# SEABATTLE_DEBUG: If "1", the simulator CLI logs at DEBUG level.
#   Defaults to "0" (INFO).
#   Example: export SEABATTLE_DEBUG=1
DEBUG: bool = os.getenv("SEABATTLE_DEBUG", "0") == "1"

LOG_FORMAT: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
