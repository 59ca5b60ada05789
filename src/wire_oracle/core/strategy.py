"""AI decision procedures for the pick and play phases.

``pick_card`` chooses the tile to mark with an info token. ``pick_play_cards``
tries a fixed sequence of strategies, from guaranteed matches down to
probabilistic guesses and edge heuristics, and returns the first move found.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from itertools import combinations

import numpy as np

from wire_oracle.core.config import StrategyConfig
from wire_oracle.core.deduction import candidates_for_slot
from wire_oracle.core.game_state import GameState, Move, Player
from wire_oracle.core.inference import (
    SlotProbabilities,
    SlotQuery,
    monte_carlo_slot_probabilities,
)
from wire_oracle.core.wires import WireColor, WireTile, WireValue, wire_value

logger = logging.getLogger(__name__)

# (AI number, target position) pairs tried by the edge fallback, in order.
EDGE_PAIRS: tuple[tuple[int, str], ...] = (
    (1, "first"),
    (12, "last"),
    (2, "first"),
    (11, "last"),
    (3, "first"),
    (10, "last"),
)


# ------------------------------------------------------------------
# Pick phase
# ------------------------------------------------------------------


def _hand_uncertainty(state: GameState, player_id: int, cap: int) -> int:
    hand = state.player(player_id).hand
    return sum(
        min(cap, candidates_for_slot(state, player_id, i).size)
        for i in range(len(hand))
    )


def pick_card(
    state: GameState,
    player_id: int,
    rng: np.random.Generator | None = None,
    config: StrategyConfig | None = None,
) -> int | None:
    """Choose the blue tile to mark with an info token.

    Tiles whose number another player already marked are skipped. If a
    number appears exactly three times among the rest, only those tiles
    are considered. The pick is the tile whose token minimises the summed
    (capped) candidate-set sizes over the whole hand.

    Args:
        state: The current game state.
        player_id: The AI making the pick.
        rng: Random generator for the no-improvement fallback.
        config: Strategy settings.

    Returns:
        The hand index to mark, or None if no blue tile qualifies.
    """
    config = config or StrategyConfig()
    player = state.player(player_id)

    marked_elsewhere = {
        tile.number
        for other in state.others(player_id)
        for tile in other.hand
        if tile.is_blue() and tile.info_token
    }
    indexes = [
        idx
        for idx, tile in enumerate(player.hand)
        if tile.is_blue() and not tile.is_known() and tile.number not in marked_elsewhere
    ]
    if not indexes:
        return None

    number_counts = Counter(player.hand[idx].number for idx in indexes)
    triple = next((n for n, c in number_counts.items() if c == 3), None)
    if triple is not None:
        indexes = [idx for idx in indexes if player.hand[idx].number == triple]

    baseline = _hand_uncertainty(state, player_id, config.uncertainty_cap)
    best_idx: int | None = None
    best_sum = baseline
    for idx in indexes:
        hypothetical = state.apply_info_token(player_id, idx)
        total = _hand_uncertainty(hypothetical, player_id, config.uncertainty_cap)
        if total < best_sum:
            best_idx, best_sum = idx, total

    if best_idx is not None:
        return best_idx

    rng = rng if rng is not None else np.random.default_rng()
    return indexes[int(rng.integers(len(indexes)))]


# ------------------------------------------------------------------
# Play phase: guaranteed matches
# ------------------------------------------------------------------


def _all_unrevealed_red(unrevealed: list[WireTile]) -> bool:
    return bool(unrevealed) and all(t.color is WireColor.RED for t in unrevealed)


def _group_by_value(unrevealed: list[WireTile]) -> dict[WireValue, list[WireTile]]:
    """Group tiles by matching value: blue by number, yellow and red by colour."""
    groups: dict[WireValue, list[WireTile]] = defaultdict(list)
    for tile in unrevealed:
        groups[wire_value(tile)].append(tile)
    return groups


def _self_play(player: Player, pair: list[WireTile]) -> Move:
    return Move(
        source_player_idx=player.id,
        source_card_id=pair[0].id,
        target_player_idx=player.id,
        target_card_id=pair[1].id,
    )


def _pick_four_of_a_kind(
    player: Player, groups: dict[WireValue, list[WireTile]]
) -> Move | None:
    for group in groups.values():
        if len(group) == 4:
            return _self_play(player, group)
    return None


def _pick_two_of_a_kind(
    state: GameState, player: Player, groups: dict[WireValue, list[WireTile]]
) -> Move | None:
    """Self-play a pair when no other unrevealed copy exists anywhere."""
    for value, group in groups.items():
        if len(group) != 2 or value is WireColor.RED:
            continue
        total = sum(
            1
            for tile in state.hand_tiles()
            if not tile.revealed and wire_value(tile) == value
        )
        if total == 2:
            return _self_play(player, group)
    return None


def _pick_info_token(
    state: GameState, player: Player, unrevealed: list[WireTile]
) -> Move | None:
    """Match a tile against another player's info-token tile."""
    for mine in unrevealed:
        for other in state.others(player.id):
            for tile in other.hand:
                if not tile.revealed and tile.info_token and mine.matches(tile):
                    return Move(
                        source_player_idx=player.id,
                        source_card_id=mine.id,
                        target_player_idx=other.id,
                        target_card_id=tile.id,
                    )
    return None


def _find_matching_tile(unrevealed: list[WireTile], value: WireValue) -> WireTile | None:
    for tile in unrevealed:
        if wire_value(tile) == value:
            return tile
    return None


def _hidden_slots(state: GameState, player: Player) -> list[SlotQuery]:
    """Candidate sets of every unknown slot of the other players."""
    slots: list[SlotQuery] = []
    for other in state.others(player.id):
        for idx, tile in enumerate(other.hand):
            if tile.is_known():
                continue
            slots.append(
                SlotQuery(
                    player_id=other.id,
                    card_id=tile.id,
                    candidates=candidates_for_slot(
                        state, other.id, idx, viewer_id=player.id
                    ),
                )
            )
    return slots


def _pick_deterministic(
    player: Player, slots: list[SlotQuery], unrevealed: list[WireTile]
) -> Move | None:
    """Play against a slot whose candidate set has a single value."""
    for query in slots:
        value = query.candidates.single()
        if value is None:
            continue
        mine = _find_matching_tile(unrevealed, value)
        if mine is not None:
            return Move(
                source_player_idx=player.id,
                source_card_id=mine.id,
                target_player_idx=query.player_id,
                target_card_id=query.card_id,
            )
    return None


# ------------------------------------------------------------------
# Play phase: probabilistic
# ------------------------------------------------------------------


def _pick_best_probability(
    player: Player,
    probabilities: list[SlotProbabilities],
    unrevealed: list[WireTile],
    config: StrategyConfig,
) -> tuple[Move | None, float]:
    """Return the single-target move with the highest match probability.

    A target is skipped when its red probability exceeds
    ``red_risk_ratio`` times the match probability, unless the player is
    down to its last unrevealed tile. For a red source the match
    probability is the red probability, so it never passes the guard
    before the last tile.
    """
    last_tile = len(unrevealed) == 1
    best: Move | None = None
    best_prob = 0.0
    for mine in unrevealed:
        value = wire_value(mine)
        for slot in probabilities:
            target = slot.probability_of(value)
            if target <= 0.0:
                continue
            red = slot.probability_of(WireColor.RED)
            if red > target * config.red_risk_ratio and not last_tile:
                continue
            if target > best_prob:
                best_prob = target
                best = Move(
                    source_player_idx=player.id,
                    source_card_id=mine.id,
                    target_player_idx=slot.info.player_id,
                    target_card_id=slot.info.card_id,
                )
    return best, best_prob


def _group_probabilities_by_player(
    probabilities: list[SlotProbabilities],
) -> dict[int, list[SlotProbabilities]]:
    grouped: dict[int, list[SlotProbabilities]] = defaultdict(list)
    for slot in probabilities:
        grouped[slot.info.player_id].append(slot)
    return grouped


def _count_matching_tiles(state: GameState, player_id: int, mine: WireTile) -> int:
    """Count unrevealed tiles of other players that match *mine*.

    Reads the true identities in *state*, not only public information.
    """
    return sum(
        1
        for other in state.others(player_id)
        for tile in other.hand
        if not tile.revealed and mine.matches(tile)
    )


def _check_double_detector_advantage(
    state: GameState,
    player_id: int,
    probabilities: list[SlotProbabilities],
    best_prob: float,
    config: StrategyConfig | None = None,
) -> Move | None:
    """Return a double detector move if it clearly beats the best single one.

    Pairs of slots of the same player are combined: with a single matching
    tile left in the game the events are exclusive and the probabilities
    add, otherwise they are combined as ``p1 + p2 - p1 * p2``.
    Red sources are not considered.
    """
    config = config or StrategyConfig()
    player = state.player(player_id)
    if not player.has_double_detector or best_prob >= config.double_detector_ceiling:
        return None

    best: Move | None = None
    best_joint = 0.0
    grouped = _group_probabilities_by_player(probabilities)
    for mine in player.unrevealed():
        if mine.color is WireColor.RED:
            continue
        value = wire_value(mine)
        exclusive = _count_matching_tiles(state, player_id, mine) == 1
        for owner_id, owner_slots in grouped.items():
            for first, second in combinations(owner_slots, 2):
                p1 = first.probability_of(value)
                p2 = second.probability_of(value)
                if p1 <= 0.0 and p2 <= 0.0:
                    continue
                joint = p1 + p2 if exclusive else p1 + p2 - p1 * p2
                joint = min(1.0, joint)
                if joint > best_joint:
                    best_joint = joint
                    best = Move(
                        source_player_idx=player_id,
                        source_card_id=mine.id,
                        target_player_idx=owner_id,
                        target_card_id=first.info.card_id,
                        second_target_card_id=second.info.card_id,
                        double_detector=True,
                    )

    # Only the margin adopts the detector: a joint above the ceiling with a
    # gain below the margin must not select it.
    if best is None or best_joint - best_prob < config.double_detector_margin:
        return None
    logger.info(
        "Double detector joint probability %.3f beats single %.3f",
        best_joint,
        best_prob,
    )
    return best


# ------------------------------------------------------------------
# Play phase: fallbacks
# ------------------------------------------------------------------


def _pick_edge_strategy(state: GameState, player_id: int) -> Move | None:
    """Play an extremal number against the first/last hidden tile of a hand."""
    player = state.player(player_id)
    unrevealed = player.unrevealed()
    for number, position in EDGE_PAIRS:
        mine = next(
            (t for t in unrevealed if t.is_blue() and t.number == number), None
        )
        if mine is None:
            continue
        for other in state.others(player_id):
            hidden = other.unrevealed()
            if not hidden:
                continue
            target = hidden[0] if position == "first" else hidden[-1]
            return Move(
                source_player_idx=player_id,
                source_card_id=mine.id,
                target_player_idx=other.id,
                target_card_id=target.id,
            )

    if not unrevealed:
        return None
    other = next((p for p in state.others(player_id) if p.unrevealed()), None)
    if other is None:
        return None
    return Move(
        source_player_idx=player_id,
        source_card_id=unrevealed[0].id,
        target_player_idx=other.id,
        target_card_id=other.unrevealed()[0].id,
    )


def pick_play_cards(
    state: GameState,
    player_id: int,
    rng: np.random.Generator | None = None,
    config: StrategyConfig | None = None,
) -> Move | None:
    """Choose a play-phase move for an AI player.

    Strategies are tried in priority order: forced red disposal, four of
    a kind, a pair with no other copy left, an info-token match, a slot
    deduced to a single value, the best Monte Carlo match (possibly
    upgraded to a double detector play) and finally the edge heuristic.

    Args:
        state: The current game state.
        player_id: The AI to move.
        rng: Random generator for the Monte Carlo estimate.
        config: Strategy settings.

    Returns:
        The chosen move, or None when no move exists.
    """
    config = config or StrategyConfig()
    player = state.player(player_id)
    unrevealed = player.unrevealed()
    if not unrevealed:
        return None

    if _all_unrevealed_red(unrevealed):
        logger.info("Player %d disposes of red wire %s", player_id, unrevealed[0].id)
        return Move(source_player_idx=player_id, source_card_id=unrevealed[0].id)

    groups = _group_by_value(unrevealed)
    move = _pick_four_of_a_kind(player, groups)
    if move:
        logger.info("Player %d picked four of a kind: %s", player_id, move)
        return move
    move = _pick_two_of_a_kind(state, player, groups)
    if move:
        logger.info("Player %d picked two of a kind: %s", player_id, move)
        return move
    move = _pick_info_token(state, player, unrevealed)
    if move:
        logger.info("Player %d picked info token match: %s", player_id, move)
        return move

    slots = _hidden_slots(state, player)
    move = _pick_deterministic(player, slots, unrevealed)
    if move:
        logger.info("Player %d found a deterministic match: %s", player_id, move)
        return move

    if slots:
        probabilities = monte_carlo_slot_probabilities(
            state,
            slots,
            requesting_player_id=player_id,
            iterations=config.iterations,
            rng=rng,
        )
        move, best_prob = _pick_best_probability(
            player, probabilities, unrevealed, config
        )
        double = _check_double_detector_advantage(
            state, player_id, probabilities, best_prob, config
        )
        if double:
            return double
        if move:
            logger.info(
                "Player %d picked best probability %.3f: %s", player_id, best_prob, move
            )
            return move

    move = _pick_edge_strategy(state, player_id)
    if move:
        logger.info("Player %d fell back to edge strategy: %s", player_id, move)
    return move
