from __future__ import annotations

from typing import Sequence

from patchgraph.app.models.graph import GraphUnit, Placement

BASELINE_Y = 0.0


def position_units(units: Sequence[GraphUnit], baseline: float = BASELINE_Y) -> list[Placement]:
    """Place units left to right by width and link each to its neighbours."""
    placements: list[Placement] = []
    x = 0.0
    for index, unit in enumerate(units):
        placements.append(
            Placement(
                unit_id=unit.id,
                x=x,
                y=baseline,
                left_id=units[index - 1].id if index > 0 else None,
                right_id=units[index + 1].id if index < len(units) - 1 else None,
            )
        )
        x += unit.width
    return placements
