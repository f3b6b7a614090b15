"""
Hex coordinate system.
Cube/axial coordinates (q, r, s) with s = -q - r, plus the board-shape generator.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, order=True)
class Coordinate:
    """
    Immutable hex coordinate.
    Frozen so it can key the grid mapping; s is always derived from q and r.
    """
    q: int
    r: int
    s: int = field(default=None, compare=False)  # type: ignore[assignment]

    def __post_init__(self) -> None:
        derived = -self.q - self.r
        if self.s is None:
            object.__setattr__(self, "s", derived)
        elif self.s != derived:
            raise ValueError(f"Invalid cube coordinate ({self.q}, {self.r}, {self.s}): q + r + s must be 0")

    def neighbors(self) -> list["Coordinate"]:
        """The 6 adjacent coordinates, in fixed order (E, NE, NW, W, SW, SE)."""
        return [Coordinate(self.q + dq, self.r + dr) for dq, dr in HEX_DIRECTIONS]

    def distance(self, other: "Coordinate") -> int:
        return (abs(self.q - other.q) + abs(self.r - other.r) + abs(self.s - other.s)) // 2

    def to_dict(self) -> dict[str, int]:
        return {"q": self.q, "r": self.r, "s": self.s}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Coordinate":
        return cls(int(data["q"]), int(data["r"]))

    def __str__(self) -> str:
        return f"[{self.q}, {self.r}]"


# Axial direction vectors. The order is the tie-break for deterministic iteration.
HEX_DIRECTIONS = [(1, 0), (1, -1), (0, -1), (-1, 0), (-1, 1), (0, 1)]


def generate_board_index(height: int, width: int) -> list[list[Coordinate]]:
    """
    Generate the board shape row by row.

    Row r spans q in [-floor(r/2), width - floor(r/2)), which gives a
    parallelogram with a half-hex offset every second row rather than a
    regular hexagon.

    Example (height=3, width=2):
        [[(0,0), (1,0)], [(0,1), (1,1)], [(-1,2), (0,2)]]
    """
    board: list[list[Coordinate]] = []
    for r in range(height):
        offset = r // 2
        board.append([Coordinate(q, r) for q in range(-offset, width - offset)])
    return board
