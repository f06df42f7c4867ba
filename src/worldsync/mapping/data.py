"""Static identity tables for the Talos Principle Reawakened multiworld.

Order matters: location ids are assigned sequentially from
``BASE_LOCATION_ID``, collectibles first and stars after them.
"""

from __future__ import annotations

BASE_ITEM_ID = 0x540000
BASE_LOCATION_ID = 0x540000

# Item type id offset -> (family prefix, display name)
ITEM_FAMILIES: tuple[tuple[str, str], ...] = (
    ("DJ", "Green J"),
    ("DZ", "Green Z"),
    ("DI", "Green I"),
    ("DL", "Green L"),
    ("DT", "Green T"),
    ("MT", "Golden T"),
    ("ML", "Golden L"),
    ("MZ", "Golden Z"),
    ("MS", "Golden S"),
    ("MJ", "Golden J"),
    ("MO", "Golden O"),
    ("MI", "Golden I"),
    ("NL", "Red L"),
    ("NZ", "Red Z"),
    ("NT", "Red T"),
    ("NI", "Red I"),
    ("NJ", "Red J"),
    ("NO", "Red O"),
    ("NS", "Red S"),
)

# Every collectible in the world, grouped by area.
COLLECTIBLES: tuple[str, ...] = (
    # A1
    "DJ3", "MT1", "DZ1", "DJ2", "DJ1", "ML1", "DI1",
    # A2
    "ML2", "DL1", "DZ2",
    # A3
    "MT2", "DZ3", "NL1", "MT3",
    # A4
    "MZ1", "MZ2", "MT4", "MT5",
    # A5
    "NZ1", "DI2", "DT1", "DT2", "DL2",
    # A6
    "DZ4", "NL2", "NL3", "NZ2",
    # A7
    "NL4", "DL3", "NT1", "NO1", "DT3",
    # B1
    "ML3", "MZ3", "MS1", "MT6", "MT7",
    # B2
    "NL5", "MS2", "MT8", "MZ4",
    # B3
    "MT9", "MJ1", "NT2", "NL6",
    # B4
    "NT3", "NT4", "DT4", "DJ4", "NL7", "NL8",
    # B5
    "NI1", "NL9", "NS1", "DJ5", "NZ3",
    # B6
    "NI2", "MT10", "ML4",
    # B7
    "NJ1", "NI3", "MO1", "MI1",
    # C1
    "NZ4", "NJ2", "NI4", "NT5",
    # C2
    "NZ5", "NO2", "NT6", "NS2",
    # C3
    "NJ3", "NO3", "NZ6", "NT7",
    # C4
    "NT8", "NI5", "NS3", "NT9",
    # C5
    "NI6", "NO4", "NO5", "NT10",
    # C6
    "NS4", "NJ4", "NO6",
    # C7
    "NT11", "NO7", "NT12", "NL10",
)  # fmt: skip

# (puzzle code, star id)
STARS: tuple[tuple[str, str], ...] = (
    ("SCentralArea_Chapter", "Star5"),
    ("SCloud_1_02", "Star2"),
    ("S015", "Star1"),
    ("SCloud_1_03", "Star3"),
    ("S202b", "Star4"),
    ("S201", "Star7"),
    ("S244", "Star6"),
    ("SCloud_1_06", "Star8"),
    ("S209", "Star9"),
    ("S205", "Star10"),
    ("S213", "Star11"),
    ("S300a", "Star12"),
    ("SCloud_2_04", "Star24"),
    ("S215", "Star13"),
    ("SCloud_2_05", "Star14"),
    ("S301", "Star16"),
    ("SCloud_2_07", "Star15"),
    ("SCloud_3_01", "Star17"),
    ("SIslands_01", "Star26"),
    ("SLevel05_Elevator", "Star25"),
    ("S403", "Star18"),
    ("S318", "Star19"),
    ("S408", "Star21"),
    ("S405", "Star20"),
    ("S328", "Star23"),
    ("S404", "Star27"),
    ("S309", "Star22"),
    ("SNexus", "Star28"),
    ("S234", "Star29"),
    ("S308", "Star30"),
)

# Classification code -> letter
TYPE_LETTERS: dict[int, str] = {
    1: "D",  # door
    2: "M",  # mechanic
    4: "N",  # nexus
    8: "S",  # secret
    16: "E",  # alternative ending
    32: "A",  # arcade
    64: "H",  # help
}

SHAPE_LETTERS: dict[int, str] = {
    1: "I",
    2: "J",
    4: "L",
    8: "O",
    16: "S",
    32: "T",
    64: "Z",
}
