"""Tests for move resolution."""

from __future__ import annotations

import numpy as np
import pytest

from wire_oracle.core.game_state import GameState, HistoryKind, Move, Player, PlayerKind
from wire_oracle.core.rules import Outcome, resolve_play
from wire_oracle.core.wires import WireColor, WireTile


def _blue(card_id: str, n: int, *, revealed: bool = False) -> WireTile:
    return WireTile(id=card_id, color=WireColor.BLUE, number=n, revealed=revealed)


def _yellow(card_id: str, number: float) -> WireTile:
    return WireTile(id=card_id, color=WireColor.YELLOW, number=number)


def _red(card_id: str, number: float) -> WireTile:
    return WireTile(id=card_id, color=WireColor.RED, number=number)


def _player(pid: int, *tiles: WireTile, detector: bool = False) -> Player:
    return Player(
        id=pid,
        name=f"P{pid}",
        kind=PlayerKind.AI,
        hand=tuple(tiles),
        has_double_detector=detector,
    )


def _state(*players: Player, dial: int = 3) -> GameState:
    return GameState(players=tuple(players), detonator_dial=dial)


def _resolve(state: GameState, move: Move, seed: int = 0):
    return resolve_play(state, move, rng=np.random.default_rng(seed))


def _tile(state: GameState, pid: int, card_id: str) -> WireTile:
    tile = state.player(pid).find(card_id)
    assert tile is not None
    return tile


class TestMatches:
    def test_blue_match_reveals_both(self) -> None:
        state = _state(_player(0, _blue("a", 5)), _player(1, _blue("b", 5)))
        new, result = _resolve(state, Move(0, "a", 1, "b"))
        assert result.outcome is Outcome.MATCH_BLUE
        assert result.is_valid
        assert result.revealed == ("a", "b")
        assert result.detonator_dial == 3
        assert _tile(new, 0, "a").revealed and _tile(new, 1, "b").revealed
        assert new.detonator_dial == 3

    def test_match_is_recorded(self) -> None:
        state = _state(_player(0, _blue("a", 5)), _player(1, _blue("b", 5)))
        move = Move(0, "a", 1, "b")
        new, result = _resolve(state, move)
        [entry] = new.history
        assert entry.kind is HistoryKind.PLAY
        assert entry.player_id == 0
        assert entry.move == move
        assert entry.result == result

    def test_yellow_match(self) -> None:
        state = _state(_player(0, _yellow("y1", 2.1)), _player(1, _yellow("y2", 9.1)))
        _, result = _resolve(state, Move(0, "y1", 1, "y2"))
        assert result.outcome is Outcome.MATCH_YELLOW

    def test_state_is_not_mutated(self) -> None:
        state = _state(_player(0, _blue("a", 5)), _player(1, _blue("b", 5)))
        _resolve(state, Move(0, "a", 1, "b"))
        assert not _tile(state, 0, "a").revealed
        assert state.history == ()

    def test_reveal_clears_known_wire(self) -> None:
        me = _player(0, _blue("a", 5))
        state = _state(me, _player(1, _blue("b", 6), _blue("c", 5)))
        state, miss = _resolve(state, Move(0, "a", 1, "b"))
        assert miss.outcome is Outcome.MISS
        assert [t.id for t in state.player(0).known_wires] == ["a"]
        state, hit = _resolve(state, Move(0, "a", 1, "c"))
        assert hit.outcome is Outcome.MATCH_BLUE
        assert state.player(0).known_wires == ()


class TestSelfPlay:
    def test_four_of_a_kind(self) -> None:
        me = _player(0, *(_blue(f"5-{i}", 5) for i in range(4)), _blue("x", 8))
        state = _state(me, _player(1, _blue("y", 8)))
        new, result = _resolve(state, Move(0, "5-0", 0, "5-1"))
        assert result.outcome is Outcome.MATCH_BLUE
        assert set(result.revealed) == {"5-0", "5-1", "5-2", "5-3"}
        assert not _tile(new, 0, "x").revealed

    def test_pair_with_other_copies_revealed(self) -> None:
        me = _player(0, _blue("a", 7), _blue("b", 7))
        other = _player(1, _blue("c", 7, revealed=True), _blue("d", 7, revealed=True))
        _, result = _resolve(_state(me, other), Move(0, "a", 0, "b"))
        assert result.outcome is Outcome.MATCH_BLUE

    def test_hidden_copy_elsewhere_is_invalid(self) -> None:
        me = _player(0, _blue("a", 7), _blue("b", 7))
        other = _player(1, _blue("c", 7))
        state = _state(me, other)
        new, result = _resolve(state, Move(0, "a", 0, "b"))
        assert result.outcome is Outcome.INVALID_PICK
        assert new is state

    def test_self_miss_is_invalid(self) -> None:
        state = _state(_player(0, _blue("a", 3), _blue("b", 4)), _player(1))
        new, result = _resolve(state, Move(0, "a", 0, "b"))
        assert result.outcome is Outcome.INVALID_PICK
        assert new is state


class TestMissAndRed:
    def test_miss(self) -> None:
        state = _state(_player(0, _blue("a", 5)), _player(1, _blue("b", 6)))
        new, result = _resolve(state, Move(0, "a", 1, "b"))
        assert result.outcome is Outcome.MISS
        assert result.info_token
        assert result.detonator_dial == 2
        assert new.detonator_dial == 2
        assert _tile(new, 1, "b").info_token
        assert not _tile(new, 0, "a").revealed

    def test_dial_does_not_go_negative(self) -> None:
        state = _state(_player(0, _blue("a", 5)), _player(1, _blue("b", 6)), dial=0)
        _, result = _resolve(state, Move(0, "a", 1, "b"))
        assert result.detonator_dial == 0

    def test_hit_red(self) -> None:
        state = _state(_player(0, _blue("a", 5)), _player(1, _red("r", 5.5)))
        new, result = _resolve(state, Move(0, "a", 1, "r"))
        assert result.outcome is Outcome.HIT_RED
        assert new.detonator_dial == 0
        assert _tile(new, 1, "r").revealed

    def test_red_matches_red(self) -> None:
        me = _player(0, _red("r1", 2.5), _blue("b", 4))
        state = _state(me, _player(1, _red("r2", 7.5)))
        new, result = _resolve(state, Move(0, "r1", 1, "r2"))
        assert result.outcome is Outcome.MATCH_RED
        assert result.revealed == ("r1", "r2")
        assert new.detonator_dial == 3
        assert _tile(new, 0, "r1").revealed and _tile(new, 1, "r2").revealed

    def test_four_red_self_play(self) -> None:
        reds = [_red(f"r{n}", n + 0.5) for n in range(1, 5)]
        me = _player(0, *reds, _blue("b", 9))
        state = _state(me, _player(1, _blue("c", 5)))
        new, result = _resolve(state, Move(0, "r1", 0, "r2"))
        assert result.outcome is Outcome.MATCH_RED
        assert set(result.revealed) == {"r1", "r2", "r3", "r4"}
        assert new.detonator_dial == 3
        assert not _tile(new, 0, "b").revealed

    def test_blue_against_red_explodes(self) -> None:
        me = _player(0, _blue("b", 4), _red("r1", 6.5))
        state = _state(me, _player(1, _red("r2", 7.5)))
        _, result = _resolve(state, Move(0, "b", 1, "r2"))
        assert result.outcome is Outcome.HIT_RED

    def test_red_disposal(self) -> None:
        me = _player(0, _red("r1", 2.5), _blue("b", 4, revealed=True), _red("r2", 6.5))
        state = _state(me, _player(1, _blue("c", 9)))
        new, result = _resolve(state, Move(0, "r1"))
        assert result.outcome is Outcome.MATCH_RED
        assert result.revealed == ("r1", "r2")
        assert new.detonator_dial == 3
        assert all(t.revealed for t in new.player(0).hand)

    def test_red_disposal_ignores_target(self) -> None:
        me = _player(0, _red("r1", 2.5))
        state = _state(me, _player(1, _blue("c", 9)))
        new, result = _resolve(state, Move(0, "r1", 1, "c"))
        assert result.outcome is Outcome.MATCH_RED
        assert not _tile(new, 1, "c").revealed


class TestInvalid:
    @pytest.fixture
    def state(self) -> GameState:
        return _state(
            _player(0, _blue("a", 5), _blue("z", 6, revealed=True)),
            _player(1, _blue("b", 5), _blue("c", 8, revealed=True)),
        )

    @pytest.mark.parametrize(
        "move",
        [
            Move(0, "nope", 1, "b"),
            Move(0, "z", 1, "b"),
            Move(0, "a", 1, "c"),
            Move(0, "a", 1, "nope"),
            Move(0, "a", 9, "b"),
            Move(9, "a", 1, "b"),
        ],
    )
    def test_invalid_pick(self, state: GameState, move: Move) -> None:
        new, result = _resolve(state, move)
        assert result.outcome is Outcome.INVALID_PICK
        assert not result.is_valid
        assert new is state

    def test_incomplete(self, state: GameState) -> None:
        new, result = _resolve(state, Move(0, "a"))
        assert result.outcome is Outcome.INCOMPLETE_PICK
        assert not result.is_valid
        assert new is state


class TestDoubleDetector:
    def _move(self, first: str, second: str) -> Move:
        return Move(
            0, "m", 1, first, second_target_card_id=second, double_detector=True
        )

    def test_match_on_either_target(self) -> None:
        me = _player(0, _blue("m", 5), detector=True)
        state = _state(me, _player(1, _blue("t4", 4), _blue("t5", 5)))
        new, result = _resolve(state, self._move("t4", "t5"))
        assert result.outcome is Outcome.MATCH_BLUE
        assert result.revealed == ("m", "t5")
        assert not new.player(0).has_double_detector
        assert not _tile(new, 1, "t4").revealed

    def test_miss_marks_one_target(self) -> None:
        me = _player(0, _blue("m", 5), detector=True)
        state = _state(me, _player(1, _blue("t4", 4), _blue("t6", 6)))
        new, result = _resolve(state, self._move("t4", "t6"))
        assert result.outcome is Outcome.MISS
        assert new.detonator_dial == 2
        marked = [t.id for t in new.player(1).hand if t.info_token]
        assert len(marked) == 1
        assert not new.player(0).has_double_detector

    def test_miss_never_marks_red(self) -> None:
        me = _player(0, _blue("m", 5), detector=True)
        state = _state(me, _player(1, _blue("t4", 4), _red("r", 6.5)))
        for seed in range(5):
            new, result = _resolve(state, self._move("t4", "r"), seed=seed)
            assert result.outcome is Outcome.MISS
            assert _tile(new, 1, "t4").info_token
            assert not _tile(new, 1, "r").revealed

    def test_both_red(self) -> None:
        me = _player(0, _blue("m", 5), detector=True)
        state = _state(me, _player(1, _red("r1", 3.5), _red("r2", 8.5)))
        new, result = _resolve(state, self._move("r1", "r2"))
        assert result.outcome is Outcome.HIT_RED
        assert new.detonator_dial == 0

    def test_requires_detector(self) -> None:
        me = _player(0, _blue("m", 5))
        state = _state(me, _player(1, _blue("t4", 4), _blue("t5", 5)))
        new, result = _resolve(state, self._move("t4", "t5"))
        assert result.outcome is Outcome.INVALID_PICK
        assert new is state

    def test_same_target_twice(self) -> None:
        me = _player(0, _blue("m", 5), detector=True)
        state = _state(me, _player(1, _blue("t5", 5)))
        _, result = _resolve(state, self._move("t5", "t5"))
        assert result.outcome is Outcome.INVALID_PICK
