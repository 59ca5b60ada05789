"""Resolution of play-phase moves.

``resolve_play`` applies a ``Move`` to a ``GameState`` and reports the
outcome. Invalid moves leave the state untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum

import numpy as np

from wire_oracle.core.game_state import (
    GameState,
    HistoryEntry,
    HistoryKind,
    Move,
    Player,
)
from wire_oracle.core.wires import WireColor, WireTile

logger = logging.getLogger(__name__)


class Outcome(Enum):
    """Result kinds of a play."""

    MATCH_BLUE = "match-blue"
    MATCH_YELLOW = "match-yellow"
    MATCH_RED = "match-red"
    HIT_RED = "hit-red"
    MISS = "miss"
    INVALID_PICK = "invalid-pick"
    INCOMPLETE_PICK = "incomplete-pick"


@dataclass(frozen=True)
class PlayResult:
    """What happened when a move was resolved.

    Attributes:
        outcome: The result kind.
        detonator_dial: Dial value after the move.
        revealed: Ids of tiles revealed by the move.
        info_token: An info token was placed.
    """

    outcome: Outcome
    detonator_dial: int
    revealed: tuple[str, ...] = ()
    info_token: bool = False

    @property
    def is_valid(self) -> bool:
        return self.outcome not in (Outcome.INVALID_PICK, Outcome.INCOMPLETE_PICK)


def _match_outcome(tile: WireTile) -> Outcome:
    if tile.color is WireColor.YELLOW:
        return Outcome.MATCH_YELLOW
    if tile.color is WireColor.RED:
        return Outcome.MATCH_RED
    return Outcome.MATCH_BLUE


def _record(state: GameState, move: Move, result: PlayResult) -> GameState:
    logger.info(
        "Player %d: %s (dial %d)",
        move.source_player_idx,
        result.outcome.value,
        result.detonator_dial,
    )
    return replace(
        state.append_history(
            HistoryEntry(
                kind=HistoryKind.PLAY,
                player_id=move.source_player_idx,
                move=move,
                result=result,
            )
        ),
        detonator_dial=result.detonator_dial,
    )


def _miss_source(state: GameState, source: Player, tile: WireTile) -> GameState:
    """Remember the source tile publicly after a miss."""
    return state.with_player(replace(source, known_wires=source.known_wires + (tile,)))


def _resolve_red_source(
    state: GameState, move: Move, source: Player
) -> tuple[GameState, PlayResult] | None:
    """Reveal every red wire once the owner holds nothing else unrevealed."""
    if not all(t.color is WireColor.RED or t.revealed for t in source.hand):
        return None
    revealed = [t.id for t in source.hand if t.color is WireColor.RED and not t.revealed]
    for card_id in revealed:
        state = state.reveal(source.id, card_id)
    result = PlayResult(
        outcome=Outcome.MATCH_RED,
        detonator_dial=state.detonator_dial,
        revealed=tuple(revealed),
    )
    return _record(state, move, result), result


def _resolve_double_detector(
    state: GameState,
    move: Move,
    source_tile: WireTile,
    first: WireTile,
    second: WireTile,
    rng: np.random.Generator,
) -> tuple[GameState, PlayResult]:
    source = state.player(move.source_player_idx)
    target_id = move.target_player_idx
    assert target_id is not None
    state = state.with_player(replace(source, has_double_detector=False))

    matching = [t for t in (first, second) if source_tile.matches(t)]
    if matching:
        hit = matching[int(rng.integers(len(matching)))]
        state = state.reveal(move.source_player_idx, source_tile.id)
        state = state.reveal(target_id, hit.id)
        result = PlayResult(
            outcome=_match_outcome(source_tile),
            detonator_dial=state.detonator_dial,
            revealed=(source_tile.id, hit.id),
        )
        return _record(state, move, result), result

    non_red = [t for t in (first, second) if t.color is not WireColor.RED]
    if non_red:
        marked = non_red[int(rng.integers(len(non_red)))]
        state = state.replace_tile(target_id, marked.with_info_token())
        state = _miss_source(state, state.player(move.source_player_idx), source_tile)
        result = PlayResult(
            outcome=Outcome.MISS,
            detonator_dial=max(0, state.detonator_dial - 1),
            info_token=True,
        )
        return _record(state, move, result), result

    exploded = (first, second)[int(rng.integers(2))]
    state = state.reveal(target_id, exploded.id)
    result = PlayResult(outcome=Outcome.HIT_RED, detonator_dial=0, revealed=(exploded.id,))
    return _record(state, move, result), result


def _resolve_match(
    state: GameState, move: Move, source_tile: WireTile, target_tile: WireTile
) -> tuple[GameState, PlayResult] | None:
    source_id = move.source_player_idx
    target_id = move.target_player_idx
    assert target_id is not None

    if source_id == target_id:
        for other in state.others(source_id):
            if any(source_tile.matches(t) and not t.revealed for t in other.hand):
                return None
        revealed = [
            t.id
            for t in state.player(source_id).hand
            if source_tile.matches(t) and not t.revealed
        ]
        for card_id in revealed:
            state = state.reveal(source_id, card_id)
    else:
        state = state.reveal(source_id, source_tile.id)
        state = state.reveal(target_id, target_tile.id)
        revealed = [source_tile.id, target_tile.id]

    result = PlayResult(
        outcome=_match_outcome(source_tile),
        detonator_dial=state.detonator_dial,
        revealed=tuple(revealed),
    )
    return _record(state, move, result), result


def resolve_play(
    state: GameState,
    move: Move,
    rng: np.random.Generator | None = None,
) -> tuple[GameState, PlayResult]:
    """Apply a move and return the new state with its outcome.

    Args:
        state: The current game state.
        move: The move to resolve.
        rng: Random generator for double detector tie-breaks.

    Returns:
        ``(new_state, result)``. For invalid or incomplete moves the
        returned state is *state* itself.
    """
    rng = rng if rng is not None else np.random.default_rng()

    def invalid(outcome: Outcome = Outcome.INVALID_PICK) -> tuple[GameState, PlayResult]:
        return state, PlayResult(outcome=outcome, detonator_dial=state.detonator_dial)

    try:
        source = state.player(move.source_player_idx)
    except KeyError:
        return invalid()
    source_tile = source.find(move.source_card_id)
    if source_tile is None or source_tile.revealed:
        return invalid()
    if move.second_target_card_id and not source.has_double_detector:
        return invalid()

    if source_tile.color is WireColor.RED:
        red = _resolve_red_source(state, move, source)
        if red is not None:
            return red

    if move.target_player_idx is None:
        return invalid(Outcome.INCOMPLETE_PICK)
    try:
        target = state.player(move.target_player_idx)
    except KeyError:
        return invalid()
    target_tile = target.find(move.target_card_id)
    if target_tile is None or target_tile.revealed:
        return invalid()

    if move.second_target_card_id:
        second = target.find(move.second_target_card_id)
        if second is None or second.revealed or second.id == target_tile.id:
            return invalid()
        return _resolve_double_detector(state, move, source_tile, target_tile, second, rng)

    if source_tile.matches(target_tile):
        matched = _resolve_match(state, move, source_tile, target_tile)
        if matched is None:
            return invalid()
        return matched

    if target_tile.color is WireColor.RED:
        state = state.reveal(target.id, target_tile.id)
        result = PlayResult(
            outcome=Outcome.HIT_RED, detonator_dial=0, revealed=(target_tile.id,)
        )
        return _record(state, move, result), result

    if source.id == target.id:
        return invalid()

    state = state.replace_tile(target.id, target_tile.with_info_token())
    state = _miss_source(state, state.player(source.id), source_tile)
    result = PlayResult(
        outcome=Outcome.MISS,
        detonator_dial=max(0, state.detonator_dial - 1),
        info_token=True,
    )
    return _record(state, move, result), result
