#!/usr/bin/env python3
"""AI-vs-AI self-play through the full service stack.

Usage:

    seabattle-sim --games 200 --level-a hard --level-b medium --seed 7

Each game places two random fleets, seats one AI per side and alternates
``play_ai_turn`` until a fleet is sunk.  Useful for sanity-checking the
difficulty tiers against each other.
"""

from __future__ import annotations

import argparse
import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, cast

import numpy as np

from . import config as _cfg
from .board import board_rows
from .bot import AIPlayer
from .bot_logic import AILevel
from .fleet import random_fleet
from .models import MatchStatus, PlayerRole
from .service import MatchService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchSummary:
    winner: PlayerRole
    turn_no: int
    shots_a: int
    shots_b: int

    @property
    def winner_shots(self) -> int:
        return self.shots_a if self.winner is PlayerRole.A else self.shots_b


@dataclass(frozen=True)
class SeriesStats:
    games: int
    wins_a: int
    wins_b: int
    winner_shots: np.ndarray

    def summary(self) -> Dict[str, float]:
        shots = self.winner_shots
        return {
            "games": self.games,
            "wins_a": self.wins_a,
            "wins_b": self.wins_b,
            "mean_shots": float(np.mean(shots)),
            "std_shots": float(np.std(shots)),
            "min_shots": int(np.min(shots)),
            "max_shots": int(np.max(shots)),
        }


def simulate_match(
    level_a: AILevel,
    level_b: AILevel,
    *,
    seed: Optional[int] = None,
    rules: Optional[Mapping[str, Any]] = None,
    match_id: str = "sim",
    show_boards: bool = False,
) -> MatchSummary:
    """Play one complete AI-vs-AI match and summarise it."""
    rng = random.Random(seed)
    service = MatchService(rng=rng)
    match = service.create_match(match_id, rules)
    allow_touching = match.rules.allow_touching

    players = {
        PlayerRole.A: AIPlayer.create(PlayerRole.A, level_a, seed=rng.randrange(2**32)),
        PlayerRole.B: AIPlayer.create(PlayerRole.B, level_b, seed=rng.randrange(2**32)),
    }
    for role in (PlayerRole.A, PlayerRole.B):
        service.place_fleet(match_id, role, random_fleet(allow_touching=allow_touching, rng=rng))

    shots = {PlayerRole.A: 0, PlayerRole.B: 0}
    while match.status is MatchStatus.IN_PROGRESS:
        role = cast(PlayerRole, match.current_turn)
        shots[role] += len(players[role].play_turn(service, match_id))

    winner = cast(PlayerRole, match.winner)
    if show_boards:
        loser = winner.opponent
        print(f"Final board of loser ({loser.value}):")
        print("\n".join(board_rows(match.board_of(loser))))
    logger.debug("%s won %s on turn %d", winner.value, match_id, match.turn_no)
    return MatchSummary(winner, match.turn_no, shots[PlayerRole.A], shots[PlayerRole.B])


def run_series(
    level_a: AILevel,
    level_b: AILevel,
    games: int,
    *,
    seed: Optional[int] = None,
    rules: Optional[Mapping[str, Any]] = None,
) -> SeriesStats:
    """Play *games* matches and collect win counts and the winners' shot counts."""
    if games < 1:
        raise ValueError("games must be >= 1")
    rng = random.Random(seed)
    summaries: List[MatchSummary] = [
        simulate_match(level_a, level_b, seed=rng.randrange(2**32), rules=rules, match_id=f"sim-{i}")
        for i in range(games)
    ]
    wins_a = sum(1 for s in summaries if s.winner is PlayerRole.A)
    return SeriesStats(
        games=games,
        wins_a=wins_a,
        wins_b=games - wins_a,
        winner_shots=np.array([s.winner_shots for s in summaries], dtype=int),
    )


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Sea battle AI self-play simulator")
    levels = [lvl.value for lvl in AILevel]
    parser.add_argument("--games", type=int, default=100, help="Number of matches to play")
    parser.add_argument("--level-a", choices=levels, default=AILevel.HARD.value, help="AI level for player A")
    parser.add_argument("--level-b", choices=levels, default=AILevel.MEDIUM.value, help="AI level for player B")
    parser.add_argument("--seed", type=int, help="Seed for a reproducible series")
    parser.add_argument("--allow-touching", action="store_true", help="Let ships touch")
    parser.add_argument("--no-repeat", action="store_true", help="Pass the turn after every shot")
    parser.add_argument("--show-boards", action="store_true", help="Print the loser's board after a single game")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if (args.debug or _cfg.DEBUG) else logging.INFO,
        format=_cfg.LOG_FORMAT,
    )
    if args.games < 1:
        parser.error("--games must be >= 1")

    rules = {"allow_touching": args.allow_touching, "repeat_turn_on_hit": not args.no_repeat}
    level_a, level_b = AILevel(args.level_a), AILevel(args.level_b)

    if args.games == 1:
        s = simulate_match(level_a, level_b, seed=args.seed, rules=rules, show_boards=args.show_boards)
        print(f"Winner: {s.winner.value}  turns={s.turn_no}  shots A={s.shots_a} B={s.shots_b}")
        return

    stats = run_series(level_a, level_b, args.games, seed=args.seed, rules=rules).summary()
    print(
        f"{level_a.value} (A) vs {level_b.value} (B) over {stats['games']} games: "
        f"A won {stats['wins_a']}, B won {stats['wins_b']}"
    )
    print(
        f"Winner shots: mean={stats['mean_shots']:.1f} std={stats['std_shots']:.1f} "
        f"min={stats['min_shots']} max={stats['max_shots']}"
    )


if __name__ == "__main__":
    main()
