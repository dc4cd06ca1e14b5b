"""Compare two revisions of a satellite configuration.

This example demonstrates field-by-field comparison of pydantic models,
dataclasses and plain collections, and the structural equality of the
resulting differences.

Run with::

    python examples/satellite_config.py
"""

from dataclasses import dataclass
from enum import StrEnum

from pydantic import BaseModel

import objdiff as od


class Mode(StrEnum):
    NOMINAL = "nominal"
    SAFE = "safe"


class Battery(BaseModel):
    capacity: float  # in Watt-hours
    cells: int


@dataclass
class Antenna:
    band: str
    gain_db: float


class Satellite(BaseModel):
    name: str
    battery: Battery
    antennas: list[Antenna]
    power_draw: dict[Mode, float]
    notes: list[str] = []


rev_a = Satellite(
    name="DummySat",
    battery=Battery(capacity=100.0, cells=4),
    antennas=[Antenna("S", 6.0), Antenna("X", 12.0)],
    power_draw={Mode.NOMINAL: 40.0, Mode.SAFE: 10.0},
    notes=["initial"],
)

rev_b = Satellite(
    name="DummySat",
    battery=Battery(capacity=120.0, cells=4),
    antennas=[Antenna("S", 6.0), Antenna("X", 14.5)],
    power_draw={Mode.NOMINAL: 42.0, Mode.SAFE: 10.0},
    notes=["initial", "bigger battery"],
)

for diff in od.compare(rev_a, rev_b):
    print(f"{diff.path}: {diff.old_value!r} -> {diff.new_value!r}")

# battery.capacity: 100.0 -> 120.0
# antennas[1].gain_db: 12.0 -> 14.5
# power_draw[nominal]: 40.0 -> 42.0
# notes: ['initial'] -> ['initial', 'bigger battery']

# Differences are values: the same comparison yields equal results
assert od.compare(rev_a, rev_b) == od.compare(rev_a, rev_b)
assert len(set(od.compare(rev_a, rev_b))) == 4
