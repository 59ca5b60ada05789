"""Players, moves and the immutable game state snapshot.

Each mutation (an info token, a reveal, a consumed double detector)
produces a new ``GameState``, so a decision procedure can try a
hypothetical change without touching the caller's state.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING

from wire_oracle.core.wires import WireColor, WireTile

if TYPE_CHECKING:
    from wire_oracle.core.rules import PlayResult


class PlayerKind(Enum):
    """Who makes the decisions for a seat."""

    HUMAN = "human"
    AI = "ai"


class Phase(Enum):
    """Game phases."""

    SETUP = "setup"
    PICK_CARD = "pick-card"
    PLAY = "play-phase"
    GAME_OVER = "game-over"


class HistoryKind(Enum):
    """Kinds of history entries."""

    PICK = "pick"
    PLAY = "play"


@dataclass(frozen=True)
class Player:
    """A seat at the table and its ordered hand.

    The hand is kept sorted ascending by wire number; the order is public
    and is what the deduction engine reasons about.

    Attributes:
        id: Seat index, 0-based and contiguous.
        name: Display name.
        kind: Human or AI.
        hand: The player's tiles in ascending number order.
        known_wires: Tiles this player has publicly tried and missed with.
        has_double_detector: The double detector is still available.
    """

    id: int
    name: str
    kind: PlayerKind
    hand: tuple[WireTile, ...] = ()
    known_wires: tuple[WireTile, ...] = ()
    has_double_detector: bool = False

    @property
    def is_ai(self) -> bool:
        return self.kind is PlayerKind.AI

    def unrevealed(self) -> list[WireTile]:
        """Return the tiles not yet revealed, in hand order."""
        return [tile for tile in self.hand if not tile.revealed]

    def index_of(self, card_id: str) -> int:
        """Return the hand index of the tile with id *card_id*.

        Raises:
            KeyError: If the tile is not in this hand.
        """
        for idx, tile in enumerate(self.hand):
            if tile.id == card_id:
                return idx
        raise KeyError(f"Card {card_id!r} is not in {self.name}'s hand")

    def find(self, card_id: str | None) -> WireTile | None:
        """Return the tile with id *card_id*, or None."""
        for tile in self.hand:
            if tile.id == card_id:
                return tile
        return None

    def sorted_hand(self) -> Player:
        """Return a copy with the hand sorted by number (stable)."""
        return replace(self, hand=tuple(sorted(self.hand, key=lambda t: t.number)))

    def replace_tile(self, tile: WireTile) -> Player:
        """Return a copy where the hand tile with ``tile.id`` is replaced."""
        idx = self.index_of(tile.id)
        hand = self.hand[:idx] + (tile,) + self.hand[idx + 1 :]
        return replace(self, hand=hand)

    def reveal(self, card_id: str) -> Player:
        """Reveal a tile and forget one matching entry in known_wires."""
        tile = self.hand[self.index_of(card_id)]
        player = self.replace_tile(tile.revealed_copy())
        known = list(player.known_wires)
        for i, wire in enumerate(known):
            if wire.matches(tile):
                del known[i]
                break
        return replace(player, known_wires=tuple(known))


@dataclass(frozen=True)
class Move:
    """A play-phase decision.

    A move with no target is a forced red disposal. With
    ``double_detector`` set, the source is tested against both targets.

    Attributes:
        source_player_idx: The acting player.
        source_card_id: The tile being cut from the acting player's hand.
        target_player_idx: Owner of the target tile(s), or None.
        target_card_id: The target tile, or None.
        second_target_card_id: Second target for a double detector play.
        double_detector: The move uses the double detector.
    """

    source_player_idx: int
    source_card_id: str
    target_player_idx: int | None = None
    target_card_id: str | None = None
    second_target_card_id: str | None = None
    double_detector: bool = False


@dataclass(frozen=True)
class HistoryEntry:
    """One resolved action.

    Attributes:
        kind: Pick or play.
        player_id: The acting player.
        card_id: The picked tile (pick entries only).
        move: The resolved move (play entries only).
        result: The outcome (play entries only).
    """

    kind: HistoryKind
    player_id: int
    card_id: str | None = None
    move: Move | None = None
    result: PlayResult | None = None


@dataclass(frozen=True)
class GameState:
    """Immutable snapshot of a game.

    Attributes:
        players: All seats, indexed by ``Player.id``.
        wires: Every wire created for the game, dealt or not.
        yellow_wires: The complete yellow pool, including undealt wires.
        red_wires: The complete red pool, including undealt wires.
        detonator_dial: Remaining mistakes before the bomb goes off.
        turn: Number of play turns taken.
        mission: Free-form mission label.
        history: Resolved actions in order.
        phase: Current game phase.
        current_player: Seat expected to act, or None.
    """

    players: tuple[Player, ...]
    wires: tuple[WireTile, ...] = ()
    yellow_wires: tuple[WireTile, ...] = ()
    red_wires: tuple[WireTile, ...] = ()
    detonator_dial: int = 0
    turn: int = 0
    mission: str | None = None
    history: tuple[HistoryEntry, ...] = ()
    phase: Phase = Phase.SETUP
    current_player: int | None = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def player(self, player_id: int) -> Player:
        """Return the player seated at *player_id*.

        Raises:
            KeyError: If no such player exists.
        """
        for p in self.players:
            if p.id == player_id:
                return p
        raise KeyError(f"Unknown player id {player_id}")

    def others(self, player_id: int) -> list[Player]:
        """Return every player except *player_id*, in seat order."""
        return [p for p in self.players if p.id != player_id]

    def hand_tiles(self) -> list[WireTile]:
        """Return all tiles held by any player."""
        return [tile for p in self.players for tile in p.hand]

    def pool(self, color: WireColor) -> tuple[WireTile, ...]:
        """Return the complete yellow or red pool."""
        if color is WireColor.YELLOW:
            return self.yellow_wires
        if color is WireColor.RED:
            return self.red_wires
        raise ValueError("Only yellow and red wires have a pool")

    def on_board_count(self, color: WireColor) -> int:
        """Return how many tiles of *color* are in players' hands."""
        return sum(1 for tile in self.hand_tiles() if tile.color is color)

    def all_revealed(self) -> bool:
        """Return True once every tile in every hand is revealed."""
        return all(tile.revealed for tile in self.hand_tiles())

    # ------------------------------------------------------------------
    # Mutations (return new GameState)
    # ------------------------------------------------------------------

    def with_player(self, player: Player) -> GameState:
        """Return a new state with *player* replacing the seat of the same id."""
        players = tuple(player if p.id == player.id else p for p in self.players)
        return replace(self, players=players)

    def replace_tile(self, player_id: int, tile: WireTile) -> GameState:
        """Return a new state where *player_id*'s tile ``tile.id`` is replaced."""
        return self.with_player(self.player(player_id).replace_tile(tile))

    def apply_info_token(self, player_id: int, idx: int) -> GameState:
        """Return a new state with an info token on slot *idx*."""
        tile = self.player(player_id).hand[idx]
        return self.replace_tile(player_id, tile.with_info_token())

    def reveal(self, player_id: int, card_id: str) -> GameState:
        """Return a new state with the given tile revealed."""
        return self.with_player(self.player(player_id).reveal(card_id))

    def append_history(self, entry: HistoryEntry) -> GameState:
        return replace(self, history=self.history + (entry,))
