"""Command line entry point: simulate an all-AI game."""

from __future__ import annotations

import argparse
import logging

from wire_oracle.core.config import GameConfig, StrategyConfig
from wire_oracle.core.engine import DEFAULT_MAX_TURNS, simulate_game
from wire_oracle.core.game_state import GameState, HistoryKind


def _parse_counts(text: str) -> tuple[int, int]:
    """Parse ``ON_BOARD/CREATED`` (or a single number for both)."""
    on_board, _, created = text.partition("/")
    try:
        return int(on_board), int(created or on_board)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"expected ON_BOARD/CREATED, got {text!r}"
        ) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wire-oracle",
        description="Simulate a cooperative wire-cutting game between AI players.",
    )
    parser.add_argument("--players", type=int, default=4, help="number of players (3-5)")
    parser.add_argument(
        "--yellow", type=_parse_counts, default=(0, 0), metavar="ON_BOARD/CREATED"
    )
    parser.add_argument(
        "--red", type=_parse_counts, default=(0, 0), metavar="ON_BOARD/CREATED"
    )
    parser.add_argument(
        "--no-double-detector",
        action="store_true",
        help="start the game without double detectors",
    )
    parser.add_argument("--iterations", type=int, default=1000, help="Monte Carlo trials")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--max-turns", type=int, default=DEFAULT_MAX_TURNS)
    parser.add_argument("--log-level", default="WARNING")
    return parser


def format_summary(state: GameState) -> str:
    """Render the history and final hands of a finished game."""
    lines = []
    for entry in state.history:
        if entry.kind is HistoryKind.PICK:
            lines.append(f"pick  P{entry.player_id}: info token on {entry.card_id}")
            continue
        assert entry.move is not None and entry.result is not None
        move = entry.move
        target = move.target_card_id or "-"
        if move.second_target_card_id:
            target = f"{target}+{move.second_target_card_id}"
        lines.append(
            f"play  P{move.source_player_idx}: {move.source_card_id} -> "
            f"P{move.target_player_idx}:{target}  {entry.result.outcome.value} "
            f"(dial {entry.result.detonator_dial})"
        )
    lines.append("")
    for player in state.players:
        hand = " ".join(
            f"[{tile}]" if tile.revealed else str(tile) for tile in player.hand
        )
        lines.append(f"{player.name:>6}: {hand}")
    won = state.all_revealed() and state.detonator_dial > 0
    lines.append(f"Result: {'defused' if won else 'exploded or stalled'}")
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    config = GameConfig(
        num_players=args.players,
        double_detector_enabled=not args.no_double_detector,
        yellow_on_board=args.yellow[0],
        yellow_created=args.yellow[1],
        red_on_board=args.red[0],
        red_created=args.red[1],
    )
    try:
        state = simulate_game(
            config,
            StrategyConfig(iterations=args.iterations),
            seed=args.seed,
            max_turns=args.max_turns,
        )
    except ValueError as exc:
        print(f"error: {exc}")
        return 2
    print(format_summary(state))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
