"""Monte Carlo estimation of slot values.

Given the candidate sets of the hidden slots, this module estimates
P(slot holds value) by repeatedly drawing a full assignment of all slots
that respects global scarcity and hand order. Trials that cannot be
completed are discarded without contributing to the tallies.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from wire_oracle.core.deduction import SlotCandidates
from wire_oracle.core.game_state import GameState
from wire_oracle.core.wires import (
    BLUE_COPIES,
    BLUE_MAX,
    BLUE_MIN,
    WireColor,
    WireValue,
    wire_value,
)

logger = logging.getLogger(__name__)

DEFAULT_ITERATIONS = 1000

# Column order of the tally matrix: blue 1-12, then yellow, then red.
VALUES: tuple[WireValue, ...] = (
    *range(BLUE_MIN, BLUE_MAX + 1),
    WireColor.YELLOW,
    WireColor.RED,
)
_VALUE_INDEX: dict[WireValue, int] = {v: i for i, v in enumerate(VALUES)}


@dataclass(frozen=True)
class SlotInfo:
    """Identifies a hidden slot."""

    player_id: int
    card_id: str


@dataclass(frozen=True)
class SlotQuery:
    """A hidden slot and its candidate values.

    Attributes:
        player_id: Owner of the slot.
        card_id: Id of the tile in the slot.
        candidates: Result of ``candidates_for_slot`` for the slot.
    """

    player_id: int
    card_id: str
    candidates: SlotCandidates

    @property
    def info(self) -> SlotInfo:
        return SlotInfo(player_id=self.player_id, card_id=self.card_id)


@dataclass(frozen=True)
class ValueProbability:
    """Estimated probability of one value for one slot."""

    value: WireValue
    probability: float

    @property
    def number(self) -> int | None:
        """The blue number, or None for a colour token."""
        return self.value if isinstance(self.value, int) else None

    @property
    def color(self) -> WireColor:
        if isinstance(self.value, WireColor):
            return self.value
        return WireColor.BLUE


@dataclass(frozen=True)
class SlotProbabilities:
    """Estimated value distribution of one slot.

    Attributes:
        info: The slot these estimates belong to.
        slots: Values that were hit at least once, in value order.
    """

    info: SlotInfo
    slots: tuple[ValueProbability, ...]

    # Lookup built on construction.
    _by_value: dict[WireValue, float] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "_by_value", {s.value: s.probability for s in self.slots}
        )

    def probability_of(self, value: WireValue) -> float:
        """Return the estimated probability of *value* (0.0 if never hit)."""
        return self._by_value.get(value, 0.0)


def _remaining_counts(
    state: GameState,
    requesting_player_id: int | None,
) -> NDArray[np.int64]:
    """Return how many copies of each value are still unseen.

    Seen tiles are the known tiles of every hand plus the requesting
    player's whole hand.
    """
    seen: Counter[WireValue] = Counter()
    for p in state.players:
        for tile in p.hand:
            if tile.is_known() or p.id == requesting_player_id:
                seen[wire_value(tile)] += 1

    remaining = np.zeros(len(VALUES), dtype=np.int64)
    for value, i in _VALUE_INDEX.items():
        if isinstance(value, WireColor):
            total = state.on_board_count(value)
        else:
            total = BLUE_COPIES
        remaining[i] = max(0, total - seen[value])
    return remaining


def _hand_positions(
    state: GameState, slots: Sequence[SlotQuery]
) -> list[tuple[int, int]]:
    """Return ``(player_id, hand index)`` for every slot."""
    return [
        (q.player_id, state.player(q.player_id).index_of(q.card_id)) for q in slots
    ]


def _respects_order(
    value: WireValue,
    position: tuple[int, int],
    positions: list[tuple[int, int]],
    assigned: list[WireValue | None],
) -> bool:
    """Check a blue value against blue values already drawn in the same hand.

    Colour tokens carry no exact number here and are not ordered.
    """
    if not isinstance(value, int):
        return True
    owner, idx = position
    for (other_owner, other_idx), other in zip(positions, assigned):
        if other_owner != owner or not isinstance(other, int):
            continue
        if other_idx < idx and other > value:
            return False
        if other_idx > idx and other < value:
            return False
    return True


def monte_carlo_slot_probabilities(
    state: GameState,
    slots: Sequence[SlotQuery],
    requesting_player_id: int | None = None,
    iterations: int = DEFAULT_ITERATIONS,
    rng: np.random.Generator | None = None,
) -> list[SlotProbabilities]:
    """Estimate per-slot value probabilities by sampling.

    Each trial visits the slots in random order and draws, uniformly, one
    of the slot's candidates that still has an unseen copy left and does
    not break hand order against values already drawn. A trial where some
    slot has no admissible value is discarded.

    Args:
        state: The current game state.
        slots: Hidden slots with their candidate sets.
        requesting_player_id: Player whose own hand counts as seen.
        iterations: Number of trials (attempts, not accepted samples).
        rng: Random generator; a fresh unseeded one is used if None.

    Returns:
        One ``SlotProbabilities`` per input slot, in input order.
    """
    rng = rng if rng is not None else np.random.default_rng()
    n_slots = len(slots)
    base_remaining = _remaining_counts(state, requesting_player_id)
    positions = _hand_positions(state, slots)
    candidate_lists = [list(q.candidates.possibilities) for q in slots]

    counts = np.zeros((n_slots, len(VALUES)), dtype=np.float64)
    accepted = 0

    for _ in range(iterations):
        remaining = base_remaining.copy()
        assigned: list[WireValue | None] = [None] * n_slots
        complete = True
        for si in rng.permutation(n_slots):
            options = [
                v
                for v in candidate_lists[si]
                if remaining[_VALUE_INDEX[v]] > 0
                and _respects_order(v, positions[si], positions, assigned)
            ]
            if not options:
                complete = False
                break
            choice = options[int(rng.integers(len(options)))]
            assigned[si] = choice
            remaining[_VALUE_INDEX[choice]] -= 1

        if not complete:
            continue

        accepted += 1
        for si, value in enumerate(assigned):
            counts[si, _VALUE_INDEX[value]] += 1.0

    logger.debug(
        "Monte Carlo accepted %d of %d trials over %d slots",
        accepted,
        iterations,
        n_slots,
    )
    if accepted == 0 and n_slots > 0:
        logger.warning("No consistent assignment found in %d trials", iterations)

    probs = counts / accepted if accepted else counts
    results: list[SlotProbabilities] = []
    for si, query in enumerate(slots):
        hits = tuple(
            ValueProbability(value=VALUES[vi], probability=float(probs[si, vi]))
            for vi in range(len(VALUES))
            if counts[si, vi] > 0
        )
        results.append(SlotProbabilities(info=query.info, slots=hits))
    return results
