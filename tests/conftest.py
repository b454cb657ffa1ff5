from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

# Ensure local `src` directory is importable before project is installed.
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from seabattle.fleet import create_default_fleet  # noqa: E402
from seabattle.game import create_match, place_fleet, ship_indexes  # noqa: E402
from seabattle.models import PlayerRole  # noqa: E402
from seabattle.service import MatchService  # noqa: E402

# Suppress INFO & DEBUG logs from the service during tests
logging.basicConfig(level=logging.WARNING)


class FixedRng:
    """Stand-in for random.Random whose random() always returns *value*."""

    def __init__(self, value: float) -> None:
        self.value = value

    def random(self) -> float:
        return self.value


# random() < 0.5 hands the first turn to A
A_FIRST = FixedRng(0.0)
B_FIRST = FixedRng(0.9)


@pytest.fixture
def default_fleet():
    return create_default_fleet()


@pytest.fixture
def match_factory():
    """Factory for a started match (default fleets on both sides) plus its ship indexes."""

    def _factory(first: PlayerRole = PlayerRole.A, **rules):
        match = create_match("test-match", rules)
        place_fleet(match, PlayerRole.A, create_default_fleet())
        place_fleet(match, PlayerRole.B, create_default_fleet(), rng=A_FIRST if first is PlayerRole.A else B_FIRST)
        index_a, index_b = ship_indexes(match)
        return match, index_a, index_b

    return _factory


@pytest.fixture
def service() -> MatchService:
    return MatchService(rng=A_FIRST)
