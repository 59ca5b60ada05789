"""Core domain types for Wire Oracle."""

from wire_oracle.core.config import GameConfig, StrategyConfig
from wire_oracle.core.deduction import (
    MostProbable,
    SlotCandidates,
    candidates_for_slot,
    interval_for_slot,
    nearest_known_left,
    nearest_known_right,
)
from wire_oracle.core.engine import (
    decide_pick,
    decide_play_cards,
    play_turn,
    run_pick_round,
    simulate_game,
)
from wire_oracle.core.game_setup import new_game, validate_game_parameters
from wire_oracle.core.game_state import (
    GameState,
    HistoryEntry,
    HistoryKind,
    Move,
    Phase,
    Player,
    PlayerKind,
)
from wire_oracle.core.inference import (
    SlotInfo,
    SlotProbabilities,
    SlotQuery,
    ValueProbability,
    monte_carlo_slot_probabilities,
)
from wire_oracle.core.rules import Outcome, PlayResult, resolve_play
from wire_oracle.core.strategy import pick_card, pick_play_cards
from wire_oracle.core.wires import (
    WireColor,
    WireTile,
    WireValue,
    generate_blue_wires,
    generate_colored_wires,
    value_label,
    wire_value,
)

__all__ = [
    "GameConfig",
    "GameState",
    "HistoryEntry",
    "HistoryKind",
    "MostProbable",
    "Move",
    "Outcome",
    "Phase",
    "PlayResult",
    "Player",
    "PlayerKind",
    "SlotCandidates",
    "SlotInfo",
    "SlotProbabilities",
    "SlotQuery",
    "StrategyConfig",
    "ValueProbability",
    "WireColor",
    "WireTile",
    "WireValue",
    "candidates_for_slot",
    "decide_pick",
    "decide_play_cards",
    "generate_blue_wires",
    "generate_colored_wires",
    "interval_for_slot",
    "monte_carlo_slot_probabilities",
    "nearest_known_left",
    "nearest_known_right",
    "new_game",
    "pick_card",
    "pick_play_cards",
    "play_turn",
    "resolve_play",
    "run_pick_round",
    "simulate_game",
    "validate_game_parameters",
    "value_label",
    "wire_value",
]
