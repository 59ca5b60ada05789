"""Tests for the Monte Carlo slot estimator."""

from __future__ import annotations

import logging

import numpy as np
import pytest

from wire_oracle.core.config import GameConfig
from wire_oracle.core.deduction import SlotCandidates, candidates_for_slot
from wire_oracle.core.game_setup import new_game
from wire_oracle.core.game_state import GameState, Player, PlayerKind
from wire_oracle.core.inference import (
    SlotInfo,
    SlotProbabilities,
    SlotQuery,
    ValueProbability,
    monte_carlo_slot_probabilities,
)
from wire_oracle.core.wires import WireColor, WireTile, WireValue

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _blue(card_id: str, n: int, *, revealed: bool = False) -> WireTile:
    return WireTile(id=card_id, color=WireColor.BLUE, number=n, revealed=revealed)


def _player(pid: int, *tiles: WireTile) -> Player:
    return Player(id=pid, name=f"P{pid}", kind=PlayerKind.AI, hand=tuple(tiles))


def _query(player_id: int, card_id: str, *values: WireValue) -> SlotQuery:
    return SlotQuery(
        player_id=player_id,
        card_id=card_id,
        candidates=SlotCandidates(possibilities=tuple(values), most_probable=None),
    )


def _scarce_state(second_hand_owner: int) -> GameState:
    """Requester 0 holds three 5s and three 6s; one copy of each is left.

    The two hidden slots ``x`` and ``y`` sit in the hand of player 1, or in
    the hands of players 1 and 2 when *second_hand_owner* is 2.
    """
    requester = _player(
        0, *(_blue(f"5-{i}", 5) for i in range(3)), *(_blue(f"6-{i}", 6) for i in range(3))
    )
    x, y = _blue("x", 5), _blue("y", 6)
    if second_hand_owner == 1:
        return GameState(players=(requester, _player(1, x, y), _player(2)))
    return GameState(players=(requester, _player(1, x), _player(2, y)))


def _hidden_queries(state: GameState, viewer: int) -> list[SlotQuery]:
    return [
        SlotQuery(
            player_id=p.id,
            card_id=tile.id,
            candidates=candidates_for_slot(state, p.id, idx, viewer_id=viewer),
        )
        for p in state.others(viewer)
        for idx, tile in enumerate(p.hand)
        if not tile.is_known()
    ]


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


class TestResultTypes:
    def test_probability_of_missing_value(self) -> None:
        slot = SlotProbabilities(
            info=SlotInfo(1, "a"),
            slots=(ValueProbability(3, 0.25), ValueProbability(WireColor.RED, 0.75)),
        )
        assert slot.probability_of(3) == 0.25
        assert slot.probability_of(WireColor.RED) == 0.75
        assert slot.probability_of(4) == 0.0
        assert slot.probability_of(WireColor.YELLOW) == 0.0

    def test_value_probability_fields(self) -> None:
        assert ValueProbability(7, 0.5).number == 7
        assert ValueProbability(7, 0.5).color is WireColor.BLUE
        assert ValueProbability(WireColor.YELLOW, 0.5).number is None
        assert ValueProbability(WireColor.YELLOW, 0.5).color is WireColor.YELLOW

    def test_query_info(self) -> None:
        assert _query(2, "c", 4).info == SlotInfo(player_id=2, card_id="c")


# ---------------------------------------------------------------------------
# Sampling
# ---------------------------------------------------------------------------


class TestMonteCarlo:
    def test_empty_slot_list(self) -> None:
        state = _scarce_state(2)
        assert monte_carlo_slot_probabilities(state, [], requesting_player_id=0) == []

    def test_singleton_candidate_is_certain(self) -> None:
        state = _scarce_state(2)
        [result] = monte_carlo_slot_probabilities(
            state,
            [_query(1, "x", 5)],
            requesting_player_id=0,
            iterations=50,
            rng=np.random.default_rng(0),
        )
        assert result.info == SlotInfo(1, "x")
        assert result.probability_of(5) == 1.0
        assert len(result.slots) == 1

    def test_scarcity_across_hands(self) -> None:
        state = _scarce_state(2)
        queries = [_query(1, "x", 5, 6), _query(2, "y", 5, 6)]
        first, second = monte_carlo_slot_probabilities(
            state,
            queries,
            requesting_player_id=0,
            iterations=1000,
            rng=np.random.default_rng(1),
        )
        # Exactly one 5 and one 6 remain, so each sample splits them.
        assert first.probability_of(5) + second.probability_of(5) == pytest.approx(1.0)
        assert first.probability_of(5) == pytest.approx(0.5, abs=0.1)
        assert first.probability_of(5) + first.probability_of(6) == pytest.approx(1.0)

    def test_hand_order_is_enforced(self) -> None:
        state = _scarce_state(1)
        queries = [_query(1, "x", 5, 6), _query(1, "y", 5, 6)]
        first, second = monte_carlo_slot_probabilities(
            state,
            queries,
            requesting_player_id=0,
            iterations=200,
            rng=np.random.default_rng(2),
        )
        assert first.probability_of(5) == 1.0
        assert first.probability_of(6) == 0.0
        assert second.probability_of(6) == 1.0

    def test_requester_hand_counts_as_seen(self) -> None:
        requester = _player(0, *(_blue(f"7-{i}", 7) for i in range(4)))
        state = GameState(players=(requester, _player(1, _blue("x", 8))))
        [result] = monte_carlo_slot_probabilities(
            state,
            [_query(1, "x", 7, 8)],
            requesting_player_id=0,
            iterations=100,
            rng=np.random.default_rng(3),
        )
        assert result.probability_of(7) == 0.0
        assert result.probability_of(8) == 1.0

    def test_without_requester_hand_is_hidden(self) -> None:
        requester = _player(0, *(_blue(f"7-{i}", 7) for i in range(4)))
        state = GameState(players=(requester, _player(1, _blue("x", 8))))
        [result] = monte_carlo_slot_probabilities(
            state,
            [_query(1, "x", 7, 8)],
            iterations=1000,
            rng=np.random.default_rng(3),
        )
        assert result.probability_of(7) == pytest.approx(0.5, abs=0.1)

    def test_colour_tokens_limited_by_board(self) -> None:
        yellow = WireTile(id="y", color=WireColor.YELLOW, number=4.1)
        state = GameState(
            players=(_player(0, _blue("a", 1)), _player(1, yellow, _blue("b", 9))),
            yellow_wires=(yellow,),
        )
        queries = [
            _query(1, "y", 4, WireColor.YELLOW),
            _query(1, "b", 9, WireColor.YELLOW),
        ]
        first, second = monte_carlo_slot_probabilities(
            state,
            queries,
            requesting_player_id=0,
            iterations=300,
            rng=np.random.default_rng(4),
        )
        # Only one yellow is on board, so at most one slot takes it.
        assert first.probability_of(WireColor.YELLOW) + second.probability_of(
            WireColor.YELLOW
        ) <= 1.0 + 1e-9
        assert first.probability_of(WireColor.YELLOW) > 0.0

    def test_no_accepted_trial(self, caplog: pytest.LogCaptureFixture) -> None:
        state = _scarce_state(2)
        # Both slots need the single remaining 5.
        queries = [_query(1, "x", 5), _query(2, "y", 5)]
        with caplog.at_level(logging.WARNING, logger="wire_oracle.core.inference"):
            results = monte_carlo_slot_probabilities(
                state,
                queries,
                requesting_player_id=0,
                iterations=30,
                rng=np.random.default_rng(5),
            )
        assert [r.slots for r in results] == [(), ()]
        assert results[0].probability_of(5) == 0.0
        assert "No consistent assignment" in caplog.text

    def test_seeded_reproducibility(self) -> None:
        state = new_game(GameConfig(num_players=4), np.random.default_rng(11))
        queries = _hidden_queries(state, viewer=0)
        a = monte_carlo_slot_probabilities(
            state, queries, 0, iterations=60, rng=np.random.default_rng(12)
        )
        b = monte_carlo_slot_probabilities(
            state, queries, 0, iterations=60, rng=np.random.default_rng(12)
        )
        assert a == b


class TestRealDeal:
    """Estimates over a full deal stay consistent with the candidate sets."""

    @pytest.fixture
    def estimates(self) -> tuple[list[SlotQuery], list[SlotProbabilities]]:
        config = GameConfig(
            num_players=3, yellow_created=3, yellow_on_board=2, red_created=2, red_on_board=1
        )
        state = new_game(config, np.random.default_rng(21))
        for pid in (1, 2):
            for idx in (0, 3, 6):
                state = state.replace_tile(
                    pid, state.player(pid).hand[idx].revealed_copy()
                )
        queries = _hidden_queries(state, viewer=0)
        results = monte_carlo_slot_probabilities(
            state, queries, 0, iterations=150, rng=np.random.default_rng(22)
        )
        return queries, results

    def test_one_result_per_query(self, estimates) -> None:
        queries, results = estimates
        assert [r.info for r in results] == [q.info for q in queries]

    def test_hits_are_candidates(self, estimates) -> None:
        queries, results = estimates
        for query, result in zip(queries, results):
            for hit in result.slots:
                assert hit.value in query.candidates

    def test_distributions_sum_to_one(self, estimates) -> None:
        _, results = estimates
        totals = {round(sum(s.probability for s in r.slots), 9) for r in results}
        # Either every slot was sampled or none was.
        assert totals in ({1.0}, {0.0})
