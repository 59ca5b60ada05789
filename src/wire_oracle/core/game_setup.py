"""Game creation: players, wire pools, dealing."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace

import numpy as np

from wire_oracle.core.config import GameConfig
from wire_oracle.core.game_state import GameState, Phase, Player, PlayerKind
from wire_oracle.core.wires import (
    WireColor,
    WireTile,
    generate_blue_wires,
    generate_colored_wires,
)

logger = logging.getLogger(__name__)


def validate_game_parameters(num_players: int) -> None:
    """Raise ValueError unless 3 <= *num_players* <= 5."""
    GameConfig(num_players=num_players).validate()


def create_players(
    num_players: int, has_human: bool, double_detector_enabled: bool
) -> list[Player]:
    """Create the seats; seat 0 is human when *has_human* is set."""
    players = []
    for i in range(num_players):
        human = has_human and i == 0
        players.append(
            Player(
                id=i,
                name="Human" if human else f"AI {i + 1}",
                kind=PlayerKind.HUMAN if human else PlayerKind.AI,
                has_double_detector=double_detector_enabled,
            )
        )
    return players


def prepare_wires_for_board(
    blue_wires: Sequence[WireTile],
    yellow_wires: Sequence[WireTile],
    red_wires: Sequence[WireTile],
    yellow_on_board: int,
    red_on_board: int,
    rng: np.random.Generator,
) -> list[WireTile]:
    """Select the dealt wires and shuffle them.

    The first *yellow_on_board* / *red_on_board* wires of each pool are
    dealt; the rest stay off the board but remain in the pools.
    """
    on_board = [
        *blue_wires,
        *yellow_wires[:yellow_on_board],
        *red_wires[:red_on_board],
    ]
    order = rng.permutation(len(on_board))
    return [on_board[i] for i in order]


def distribute_wires(
    players: Sequence[Player], wires: Sequence[WireTile]
) -> list[Player]:
    """Deal *wires* round-robin and sort every hand by number."""
    hands: list[list[WireTile]] = [[] for _ in players]
    for i, wire in enumerate(wires):
        hands[i % len(players)].append(wire)
    return [
        replace(p, hand=tuple(hand)).sorted_hand()
        for p, hand in zip(players, hands)
    ]


def new_game(
    config: GameConfig | None = None,
    rng: np.random.Generator | None = None,
    mission: str | None = None,
) -> GameState:
    """Create a fully dealt game ready for the pick phase.

    Args:
        config: Game parameters; defaults to four AI players, blue only.
        rng: Random generator for pools and dealing.
        mission: Optional mission label.

    Returns:
        A ``GameState`` in the ``PICK_CARD`` phase with the detonator dial
        set to the number of players.

    Raises:
        ValueError: If the configuration is invalid.
    """
    config = config or GameConfig()
    config.validate()
    rng = rng if rng is not None else np.random.default_rng()

    players = create_players(
        config.num_players, config.has_human, config.double_detector_enabled
    )
    blue = generate_blue_wires()
    yellow = generate_colored_wires(WireColor.YELLOW, config.yellow_created, rng)
    red = generate_colored_wires(WireColor.RED, config.red_created, rng)
    board = prepare_wires_for_board(
        blue, yellow, red, config.yellow_on_board, config.red_on_board, rng
    )
    players = distribute_wires(players, board)
    logger.info(
        "New game: %d players, %d wires dealt (%d yellow, %d red)",
        config.num_players,
        len(board),
        config.yellow_on_board,
        config.red_on_board,
    )
    return GameState(
        players=tuple(players),
        wires=(*blue, *yellow, *red),
        yellow_wires=yellow,
        red_wires=red,
        detonator_dial=config.num_players,
        mission=mission,
        phase=Phase.PICK_CARD,
        current_player=0,
    )
