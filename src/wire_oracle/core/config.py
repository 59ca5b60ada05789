"""Game setup and AI strategy configuration."""

from __future__ import annotations

from dataclasses import dataclass

from wire_oracle.core.wires import COLORED_BASES

MIN_PLAYERS = 3
MAX_PLAYERS = 5


@dataclass(frozen=True)
class GameConfig:
    """Parameters for creating a new game.

    Attributes:
        num_players: Number of seats, 3-5.
        has_human: Seat 0 is a human player.
        double_detector_enabled: Every player starts with a double detector.
        yellow_created: Yellow wires drawn into the pool.
        yellow_on_board: How many of those are dealt.
        red_created: Red wires drawn into the pool.
        red_on_board: How many of those are dealt.
    """

    num_players: int = 4
    has_human: bool = False
    double_detector_enabled: bool = True
    yellow_created: int = 0
    yellow_on_board: int = 0
    red_created: int = 0
    red_on_board: int = 0

    def validate(self) -> None:
        """Check the configuration.

        Raises:
            ValueError: If the player count is outside 3-5 or a colour has
                more wires on board than created, or more than 11 created.
        """
        if not (MIN_PLAYERS <= self.num_players <= MAX_PLAYERS):
            raise ValueError("Number of players must be between 3 and 5.")
        for name, created, on_board in (
            ("yellow", self.yellow_created, self.yellow_on_board),
            ("red", self.red_created, self.red_on_board),
        ):
            if not (0 <= on_board <= created <= len(COLORED_BASES)):
                raise ValueError(
                    f"Invalid {name} wire counts: created={created}, "
                    f"on_board={on_board} (need 0 <= on_board <= created <= "
                    f"{len(COLORED_BASES)})."
                )


@dataclass(frozen=True)
class StrategyConfig:
    """Tuning knobs for the AI decision procedures.

    Attributes:
        iterations: Monte Carlo trials per play decision.
        red_risk_ratio: Skip a target when P(red) exceeds this fraction of
            P(match), unless it is the player's last unrevealed tile.
        double_detector_ceiling: The double detector is only considered
            while the best single-target probability is below this.
        double_detector_margin: Minimum absolute gain of the joint
            probability over the best single target.
        uncertainty_cap: Per-slot cap on candidate set size when scoring
            info-token picks.
    """

    iterations: int = 1000
    red_risk_ratio: float = 0.1
    double_detector_ceiling: float = 0.9
    double_detector_margin: float = 0.15
    uncertainty_cap: int = 4
