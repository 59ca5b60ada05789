"""Per-slot deduction from public information.

A player's hand is sorted ascending, so a hidden slot can only hold a value
between its nearest known neighbours. Combined with the global scarcity of
each value (four copies of each blue number, one wire per yellow/red
number) this yields the set of values a slot can still hold.

The deduction is a single level of scarcity counting: a value is excluded
only when every copy of it is already seen elsewhere. Joint reasoning over
several hidden slots is left to the Monte Carlo sampler.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass

from wire_oracle.core.game_state import GameState
from wire_oracle.core.wires import (
    BLUE_COPIES,
    BLUE_MAX,
    BLUE_MIN,
    WireColor,
    WireTile,
    WireValue,
    value_label,
    wire_value,
)

COLOR_TOKENS: tuple[WireColor, ...] = (WireColor.YELLOW, WireColor.RED)


@dataclass(frozen=True)
class MostProbable:
    """The single most likely value of a slot.

    Attributes:
        value: String form of the value (``"7"``, ``"yellow"``).
        probability: Share of the remaining copies held by this value.
    """

    value: str
    probability: float


@dataclass(frozen=True)
class SlotCandidates:
    """Values a slot can still hold.

    Attributes:
        possibilities: Candidate values in deterministic order: blue
            numbers ascending, then yellow, then red.
        most_probable: The highest-weight candidate, or None when the
            candidate set is empty (inconsistent state).
    """

    possibilities: tuple[WireValue, ...]
    most_probable: MostProbable | None

    @property
    def size(self) -> int:
        return len(self.possibilities)

    def __len__(self) -> int:
        return len(self.possibilities)

    def __contains__(self, value: object) -> bool:
        return value in self.possibilities

    def single(self) -> WireValue | None:
        """Return the only candidate, or None if there is not exactly one."""
        if len(self.possibilities) == 1:
            return self.possibilities[0]
        return None


# ------------------------------------------------------------------
# Neighbour lookup
# ------------------------------------------------------------------


def nearest_known_left(hand: Sequence[WireTile], idx: int) -> float:
    """Return the number of the nearest known tile at or left of *idx*.

    Args:
        hand: A hand sorted ascending by number.
        idx: The slot index.

    Returns:
        The known tile's number, or 1 if no known tile exists to the left.
    """
    for i in range(idx, -1, -1):
        if hand[i].is_known():
            return hand[i].number
    return BLUE_MIN


def nearest_known_right(hand: Sequence[WireTile], idx: int) -> float:
    """Return the number of the nearest known tile at or right of *idx*.

    Args:
        hand: A hand sorted ascending by number.
        idx: The slot index.

    Returns:
        The known tile's number, or 12 if no known tile exists to the right.
    """
    for i in range(idx, len(hand)):
        if hand[i].is_known():
            return hand[i].number
    return BLUE_MAX


def interval_for_slot(hand: Sequence[WireTile], idx: int) -> tuple[float, float]:
    """Return the inclusive ``(left, right)`` number bounds of a slot."""
    return nearest_known_left(hand, idx), nearest_known_right(hand, idx)


# ------------------------------------------------------------------
# Candidate computation
# ------------------------------------------------------------------


def _seen_tiles(
    state: GameState,
    player_id: int,
    idx: int,
    viewer_id: int | None,
) -> list[WireTile]:
    """Return tiles whose identity is visible, excluding the queried slot.

    A tile is visible when it is known (revealed or info token) or when it
    sits in the viewer's own hand.
    """
    seen: list[WireTile] = []
    for p in state.players:
        for i, tile in enumerate(p.hand):
            if p.id == player_id and i == idx:
                continue
            if tile.is_known() or p.id == viewer_id:
                seen.append(tile)
    return seen


def _unseen_colored(
    state: GameState,
    color: WireColor,
    seen_ids: set[str],
    seen_count: int,
    left: float,
    right: float,
) -> int:
    """Return the weight of a colour token inside ``[left, right]``.

    Counts the pool wires of *color* that are unseen and fall in the
    interval, capped by the number of that colour still unseen on board.
    """
    remaining = state.on_board_count(color) - seen_count
    if remaining <= 0:
        return 0
    in_interval = sum(
        1
        for wire in state.pool(color)
        if wire.id not in seen_ids and left <= wire.number <= right
    )
    return min(in_interval, remaining)


def _most_probable(weights: dict[WireValue, int]) -> MostProbable | None:
    total = sum(weights.values())
    if total == 0:
        return None
    best_value: WireValue | None = None
    best_weight = -1
    for value, weight in weights.items():
        if weight > best_weight:
            best_value, best_weight = value, weight
    assert best_value is not None
    return MostProbable(value=value_label(best_value), probability=best_weight / total)


def candidates_for_slot(
    state: GameState,
    player_id: int,
    idx: int,
    viewer_id: int | None = None,
) -> SlotCandidates:
    """Compute the values a slot can hold given public information.

    Args:
        state: The current game state.
        player_id: Owner of the slot.
        idx: Index of the slot in the owner's hand.
        viewer_id: Optional player whose whole hand counts as seen, used
            when an AI reasons with knowledge of its own tiles.

    Returns:
        The candidate values and the most probable one.

    Raises:
        KeyError: If *player_id* is unknown.
        IndexError: If *idx* is outside the hand.
    """
    hand = state.player(player_id).hand
    tile = hand[idx]
    if tile.is_known():
        value = wire_value(tile)
        return SlotCandidates(
            possibilities=(value,),
            most_probable=MostProbable(value=value_label(value), probability=1.0),
        )

    left, right = interval_for_slot(hand, idx)
    seen = _seen_tiles(state, player_id, idx, viewer_id)
    seen_counts: Counter[WireValue] = Counter(wire_value(t) for t in seen)
    seen_ids = {t.id for t in seen}

    weights: dict[WireValue, int] = {}
    for n in range(max(BLUE_MIN, math.ceil(left)), min(BLUE_MAX, math.floor(right)) + 1):
        remaining = BLUE_COPIES - seen_counts[n]
        if remaining > 0:
            weights[n] = remaining

    for color in COLOR_TOKENS:
        weight = _unseen_colored(state, color, seen_ids, seen_counts[color], left, right)
        if weight > 0:
            weights[color] = weight

    return SlotCandidates(
        possibilities=tuple(weights),
        most_probable=_most_probable(weights),
    )
