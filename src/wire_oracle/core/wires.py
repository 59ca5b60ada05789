"""Wire tile representation and wire set generation."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum

import numpy as np

BLUE_MIN = 1
BLUE_MAX = 12
BLUE_COPIES = 4
# Yellow and red wires sit between blue numbers: n + 0.1 and n + 0.5.
COLORED_BASES = tuple(range(1, 12))


class WireColor(Enum):
    """The three wire colours."""

    BLUE = "blue"
    YELLOW = "yellow"
    RED = "red"


_COLOR_OFFSETS: dict[WireColor, float] = {
    WireColor.YELLOW: 0.1,
    WireColor.RED: 0.5,
}

# A candidate value: a blue number, or a colour token for yellow/red.
WireValue = int | WireColor


@dataclass(frozen=True)
class WireTile:
    """One physical wire tile.

    Tiles are immutable; flag changes return a new tile with the same id.

    Attributes:
        id: Unique identifier, e.g. ``"blue-7-2"`` or ``"yellow-4"``.
        color: The wire colour.
        number: Blue: integer 1-12. Yellow: ``n + 0.1``. Red: ``n + 0.5``.
        revealed: The tile has been cut and is face up.
        info_token: An info token publicly shows the tile's identity.
        selected: UI selection marker, carried but unused by the engine.

    Raises:
        ValueError: If ``number`` is not valid for ``color``.
    """

    id: str
    color: WireColor
    number: float
    revealed: bool = False
    info_token: bool = False
    selected: bool = False

    def __post_init__(self) -> None:
        if self.color is WireColor.BLUE:
            if self.number != int(self.number) or not (
                BLUE_MIN <= self.number <= BLUE_MAX
            ):
                raise ValueError(f"Invalid blue wire number: {self.number}")
            return
        base = math.floor(self.number)
        offset = _COLOR_OFFSETS[self.color]
        if base not in COLORED_BASES or not math.isclose(
            self.number - base, offset, abs_tol=1e-9
        ):
            raise ValueError(
                f"Invalid {self.color.value} wire number: {self.number}"
            )

    def is_blue(self) -> bool:
        """Return True for blue wires."""
        return self.color is WireColor.BLUE

    def is_known(self) -> bool:
        """Return True if the tile's identity is public.

        Returns:
            True when the tile is revealed or carries an info token.
        """
        return self.revealed or self.info_token

    @property
    def base_number(self) -> int:
        """The integer part of the wire number."""
        return math.floor(self.number)

    @property
    def value(self) -> WireValue:
        """The matching value: the number for blue, the colour otherwise."""
        return wire_value(self)

    def matches(self, other: WireTile) -> bool:
        """Return True if cutting *self* against *other* is a match.

        Blue wires match on equal numbers. Yellow and red wires match any
        wire of the same colour; their number only matters for position.

        Args:
            other: The tile to compare against.

        Returns:
            True when both are blue with the same number, or both share a
            non-blue colour.
        """
        if self.is_blue() or other.is_blue():
            return self.is_blue() and other.is_blue() and self.number == other.number
        return self.color is other.color

    def with_info_token(self) -> WireTile:
        """Return a copy carrying an info token."""
        return replace(self, info_token=True)

    def revealed_copy(self) -> WireTile:
        """Return a revealed copy of this tile."""
        return replace(self, revealed=True)

    def __str__(self) -> str:
        """Return a compact label like ``B7``, ``Y4.1`` or ``R3.5``."""
        if self.is_blue():
            return f"B{int(self.number)}"
        return f"{self.color.value[0].upper()}{self.number:g}"


def wire_value(tile: WireTile) -> WireValue:
    """Return the value a tile contributes to candidate sets.

    Args:
        tile: Any wire tile.

    Returns:
        ``int(number)`` for blue tiles, the tile colour otherwise.
    """
    if tile.is_blue():
        return int(tile.number)
    return tile.color


def value_label(value: WireValue) -> str:
    """Return the string form of a candidate value (``"7"``, ``"yellow"``)."""
    if isinstance(value, WireColor):
        return value.value
    return str(value)


def generate_blue_wires() -> tuple[WireTile, ...]:
    """Generate the 48 blue wires, four copies of each number 1-12.

    Returns:
        A tuple of tiles with ids ``blue-<n>-<copy>``.
    """
    return tuple(
        WireTile(id=f"blue-{n}-{i}", color=WireColor.BLUE, number=n)
        for n in range(BLUE_MIN, BLUE_MAX + 1)
        for i in range(BLUE_COPIES)
    )


def generate_colored_wires(
    color: WireColor,
    count: int,
    rng: np.random.Generator | None = None,
) -> tuple[WireTile, ...]:
    """Draw *count* distinct yellow or red wires with random base numbers.

    Args:
        color: ``WireColor.YELLOW`` or ``WireColor.RED``.
        count: How many wires to create, at most 11.
        rng: Random generator used to choose the base numbers.

    Returns:
        A tuple of tiles with ids ``<color>-<n>``, in draw order.

    Raises:
        ValueError: If *color* is blue or *count* is out of range.
    """
    if color is WireColor.BLUE:
        raise ValueError("Blue wires are generated by generate_blue_wires()")
    if not (0 <= count <= len(COLORED_BASES)):
        raise ValueError(
            f"Cannot create {count} {color.value} wires; at most "
            f"{len(COLORED_BASES)} exist."
        )
    rng = rng if rng is not None else np.random.default_rng()
    bases = rng.permutation(np.array(COLORED_BASES))[:count]
    offset = _COLOR_OFFSETS[color]
    return tuple(
        WireTile(
            id=f"{color.value}-{int(n)}",
            color=color,
            number=round(int(n) + offset, 1),
        )
        for n in bases
    )
