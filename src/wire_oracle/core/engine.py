"""Turn loop tying setup, decisions and move resolution together.

Decisions dispatch on the seat's ``PlayerKind``: AI seats run the
strategies in ``strategy``; human seats use a card id or move supplied by
the caller. Every step returns a new ``GameState``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import replace

import numpy as np

from wire_oracle.core.config import GameConfig, StrategyConfig
from wire_oracle.core.game_setup import new_game
from wire_oracle.core.game_state import (
    GameState,
    HistoryEntry,
    HistoryKind,
    Move,
    Phase,
    PlayerKind,
)
from wire_oracle.core.rules import PlayResult, resolve_play
from wire_oracle.core.strategy import pick_card, pick_play_cards

logger = logging.getLogger(__name__)

DEFAULT_MAX_TURNS = 500


def decide_pick(
    state: GameState,
    player_id: int,
    rng: np.random.Generator | None = None,
    config: StrategyConfig | None = None,
    human_card_id: str | None = None,
) -> tuple[GameState, int | None]:
    """Let a player place its info token.

    Args:
        state: The current game state.
        player_id: The picking player.
        rng: Random generator for the AI fallback pick.
        config: Strategy settings.
        human_card_id: The tile chosen by a human player.

    Returns:
        ``(new_state, index)``; index is None when nothing was marked.

    Raises:
        ValueError: If a human seat picks without *human_card_id*.
    """
    player = state.player(player_id)
    if player.kind is PlayerKind.AI:
        idx = pick_card(state, player_id, rng=rng, config=config)
    else:
        if human_card_id is None:
            raise ValueError(f"{player.name} must supply the card to mark")
        idx = player.index_of(human_card_id)
        if not player.hand[idx].is_blue():
            idx = None

    if idx is None:
        return state, None
    card_id = player.hand[idx].id
    state = state.apply_info_token(player_id, idx).append_history(
        HistoryEntry(kind=HistoryKind.PICK, player_id=player_id, card_id=card_id)
    )
    logger.info("Player %d marked %s", player_id, card_id)
    return state, idx


def decide_play_cards(
    state: GameState,
    player_id: int,
    rng: np.random.Generator | None = None,
    config: StrategyConfig | None = None,
    human_move: Move | None = None,
) -> Move | None:
    """Return the move of *player_id* for this turn.

    Raises:
        ValueError: If a human seat has no *human_move*, or the supplied
            move belongs to another player.
    """
    player = state.player(player_id)
    if player.kind is PlayerKind.AI:
        return pick_play_cards(state, player_id, rng=rng, config=config)
    if human_move is None:
        raise ValueError(f"{player.name} must supply a move")
    if human_move.source_player_idx != player_id:
        raise ValueError(
            f"Move source {human_move.source_player_idx} does not match "
            f"player {player_id}"
        )
    return human_move


def run_pick_round(
    state: GameState,
    rng: np.random.Generator | None = None,
    config: StrategyConfig | None = None,
    human_picks: Mapping[int, str] | None = None,
) -> GameState:
    """Let every seat mark one tile, in seat order, then start play.

    Human seats without an entry in *human_picks* are skipped.
    """
    human_picks = human_picks or {}
    state = replace(state, phase=Phase.PICK_CARD)
    for player in state.players:
        state = replace(state, current_player=player.id)
        if player.kind is PlayerKind.HUMAN and player.id not in human_picks:
            logger.info("Player %d has no pick supplied; skipping", player.id)
            continue
        state, _ = decide_pick(
            state,
            player.id,
            rng=rng,
            config=config,
            human_card_id=human_picks.get(player.id),
        )
    return replace(state, phase=Phase.PLAY, current_player=state.players[0].id)


def is_game_over(state: GameState) -> bool:
    """The dial reached zero or every tile is revealed."""
    return state.detonator_dial == 0 or state.all_revealed()


def next_active_player(state: GameState, after: int | None) -> int | None:
    """Return the next seat after *after* that still has hidden tiles."""
    n = len(state.players)
    start = -1 if after is None else after
    for step in range(1, n + 1):
        player = state.players[(start + step) % n]
        if player.unrevealed():
            return player.id
    return None


def play_turn(
    state: GameState,
    rng: np.random.Generator | None = None,
    config: StrategyConfig | None = None,
    human_move: Move | None = None,
) -> tuple[GameState, PlayResult | None]:
    """Let ``state.current_player`` move and resolve the move.

    Returns:
        ``(new_state, result)``; result is None when the player had no
        move. Valid moves advance ``turn``.
    """
    if state.current_player is None:
        raise ValueError("No current player to move")
    move = decide_play_cards(
        state, state.current_player, rng=rng, config=config, human_move=human_move
    )
    if move is None:
        return state, None
    state, result = resolve_play(state, move, rng=rng)
    if result.is_valid:
        state = replace(state, turn=state.turn + 1)
    return state, result


def simulate_game(
    config: GameConfig | None = None,
    strategy: StrategyConfig | None = None,
    seed: int | None = None,
    max_turns: int = DEFAULT_MAX_TURNS,
) -> GameState:
    """Play a complete all-AI game.

    The game ends when the dial reaches zero, every tile is revealed, no
    seat can produce a valid move, or *max_turns* turns were attempted.

    Args:
        config: Game parameters; must not include a human seat.
        strategy: Strategy settings for every AI.
        seed: Seed for the single random generator used throughout.
        max_turns: Upper bound on attempted turns.

    Returns:
        The final state, in the ``GAME_OVER`` phase.

    Raises:
        ValueError: If the configuration is invalid or has a human seat.
    """
    config = config or GameConfig()
    if config.has_human:
        raise ValueError("simulate_game requires AI players only")
    rng = np.random.default_rng(seed)
    state = new_game(config, rng)
    state = run_pick_round(state, rng=rng, config=strategy)

    stalled = 0
    current = None
    for _ in range(max_turns):
        if is_game_over(state):
            break
        current = next_active_player(state, current)
        if current is None:
            break
        state = replace(state, current_player=current)
        state, result = play_turn(state, rng=rng, config=strategy)
        if result is None or not result.is_valid:
            stalled += 1
            logger.warning("Player %d could not make a valid move", current)
            if stalled >= len(state.players):
                break
            continue
        stalled = 0

    logger.info(
        "Game over after %d turns: dial %d, all revealed: %s",
        state.turn,
        state.detonator_dial,
        state.all_revealed(),
    )
    return replace(state, phase=Phase.GAME_OVER, current_player=None)
