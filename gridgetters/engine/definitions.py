"""
Static definitions: terrain, fortifications, cities, players and the reinforcement unit template.
Board setups live under data/setups/<setup_id>.json and are parsed into a GameConfig.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from gridgetters.engine.hexes import Coordinate, generate_board_index

DATA_DIR = Path(__file__).parent.parent / "data"
SETUPS_DIR = DATA_DIR / "setups"

BLUE = "BLUE"
GREEN = "GREEN"
DEFAULT_PLAYERS = (BLUE, GREEN)


def _default_setup_id() -> str:
    """Single place for default: gridgetters.config.DEFAULT_SETUP_ID."""
    from gridgetters.config import DEFAULT_SETUP_ID
    return DEFAULT_SETUP_ID


@dataclass(frozen=True)
class Terrain:
    """Shared, immutable terrain type. Cells reference these, they never own them."""
    name: str
    movement_cost: int  # Movement budget consumed when entering a cell of this terrain
    attack_roll_modifier: int
    defence_roll_modifier: int


@dataclass(frozen=True)
class Fortification:
    name: str
    attack_roll_modifier: int
    defence_roll_modifier: int


@dataclass(frozen=True)
class City:
    """Placed on a cell at setup; never moves. Reinforcements may only be placed on own cities."""
    name: str
    player: str


@dataclass(frozen=True)
class UnitTemplate:
    """Stats given to every newly created reinforcement."""
    attack: int = 1
    defence: int = 1
    movement: int = 4
    attack_range: int = 1
    attack_roll_modifier: int = 0
    defence_roll_modifier: int = 0


TERRAIN = {
    "PLAIN": Terrain("PLAIN", movement_cost=1, attack_roll_modifier=0, defence_roll_modifier=0),
    "FOREST": Terrain("FOREST", movement_cost=2, attack_roll_modifier=0, defence_roll_modifier=1),
    "MOUNTAIN": Terrain("MOUNTAIN", movement_cost=4, attack_roll_modifier=-1, defence_roll_modifier=1),
}

FORTIFICATION = {
    "NONE": Fortification("NONE", attack_roll_modifier=0, defence_roll_modifier=0),
    "TRENCHES": Fortification("TRENCHES", attack_roll_modifier=0, defence_roll_modifier=1),
    "FORTRESS": Fortification("FORTRESS", attack_roll_modifier=0, defence_roll_modifier=2),
}

PLAIN = TERRAIN["PLAIN"]
FOREST = TERRAIN["FOREST"]
MOUNTAIN = TERRAIN["MOUNTAIN"]
NO_FORTIFICATION = FORTIFICATION["NONE"]

REINFORCEMENT = UnitTemplate()


@dataclass
class GameConfig:
    """Board-generation parameters and per-turn rules consumed when a game is created."""
    width: int = 9
    height: int = 6
    terrain: dict[Coordinate, Terrain] = field(default_factory=dict)
    fortifications: dict[Coordinate, Fortification] = field(default_factory=dict)
    cities: dict[Coordinate, City] = field(default_factory=dict)
    reinforcements_per_turn: int = 2
    starting_player: str = BLUE
    players: tuple[str, str] = DEFAULT_PLAYERS
    unit_template: UnitTemplate = REINFORCEMENT

    def validate(self) -> None:
        """Raise ValueError if the configuration cannot produce a playable board."""
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Board dimensions must be positive, got {self.width}x{self.height}")
        if len(self.players) != 2 or self.players[0] == self.players[1]:
            raise ValueError(f"Exactly two distinct players required, got {self.players}")
        if self.starting_player not in self.players:
            raise ValueError(f"Starting player {self.starting_player} is not one of {self.players}")
        if self.reinforcements_per_turn < 0:
            raise ValueError("reinforcements_per_turn cannot be negative")

        on_board = {c for row in generate_board_index(self.height, self.width) for c in row}
        for label, overrides in (
            ("terrain", self.terrain),
            ("fortification", self.fortifications),
            ("city", self.cities),
        ):
            for coord in overrides:
                if coord not in on_board:
                    raise ValueError(f"{label} override at {coord} is outside the board")
        for coord, city in self.cities.items():
            if city.player not in self.players:
                raise ValueError(f"City {city.name} at {coord} belongs to unknown player {city.player}")


def _parse_coordinate_entries(entries: Any, key: str, table: dict) -> dict:
    """Parse [{"q":.., "r":.., key: NAME}, ...] into {Coordinate: table[NAME]}."""
    out = {}
    if not isinstance(entries, list):
        return out
    for entry in entries:
        name = str(entry.get(key, "")).upper()
        if name not in table:
            raise ValueError(f"Unknown {key} '{name}' (expected one of {', '.join(table)})")
        out[Coordinate(int(entry["q"]), int(entry["r"]))] = table[name]
    return out


def config_from_dict(data: dict[str, Any]) -> GameConfig:
    """Build a GameConfig from a setup dict (the JSON setup format)."""
    players = tuple(data.get("players") or DEFAULT_PLAYERS)
    cities = {}
    for entry in data.get("cities") or []:
        cities[Coordinate(int(entry["q"]), int(entry["r"]))] = City(
            name=str(entry.get("name") or ""),
            player=str(entry["player"]),
        )
    config = GameConfig(
        width=int(data.get("width", 9)),
        height=int(data.get("height", 6)),
        terrain=_parse_coordinate_entries(data.get("terrain"), "terrain", TERRAIN),
        fortifications=_parse_coordinate_entries(data.get("fortifications"), "fortification", FORTIFICATION),
        cities=cities,
        reinforcements_per_turn=int(data.get("reinforcements_per_turn", 2)),
        starting_player=str(data.get("starting_player") or players[0]),
        players=players,  # type: ignore[arg-type]
    )
    config.validate()
    return config


def list_setups() -> list[dict]:
    """Return [{ id, display_name }, ...] for all setups in data/setups/."""
    out = []
    if not SETUPS_DIR.exists():
        return out
    for path in sorted(SETUPS_DIR.glob("*.json")):
        try:
            with open(path, "r") as f:
                m = json.load(f)
            out.append({"id": m.get("id", path.stem), "display_name": m.get("display_name", path.stem)})
        except (json.JSONDecodeError, OSError):
            out.append({"id": path.stem, "display_name": path.stem})
    return out


def load_setup(setup_id: str | None = None) -> GameConfig:
    """Load setup by id from data/setups/<setup_id>.json. Defaults to the configured setup."""
    setup_id = setup_id or _default_setup_id()
    path = SETUPS_DIR / f"{setup_id}.json"
    if not path.exists():
        raise FileNotFoundError(f"Setup not found: {setup_id}")
    with open(path, "r") as f:
        data = json.load(f)
    return config_from_dict(data)
