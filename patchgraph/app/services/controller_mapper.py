from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from patchgraph.app.core.errors import MappingError
from patchgraph.app.models.compile import CustomMapping
from patchgraph.app.models.controller import (
    ControlCategory,
    ControlInputType,
    ControllerMapping,
    DeviceControl,
    DeviceProfile,
)
from patchgraph.app.models.graph import GraphUnit
from patchgraph.app.models.registry import ParameterCategory, ParameterSpec

CATEGORY_PRIORITY: dict[ParameterCategory | None, int] = {
    ParameterCategory.AMPLITUDE: 0,
    ParameterCategory.FILTER: 1,
    ParameterCategory.OSCILLATOR: 2,
    ParameterCategory.EFFECT: 3,
    ParameterCategory.TRANSPORT: 4,
}


@dataclass(slots=True, frozen=True)
class MappableParameter:
    unit_id: str
    parameter: ParameterSpec

    @property
    def key(self) -> tuple[str, str]:
        return self.unit_id, self.parameter.name


class ControllerMapper:
    """Assigns device controls to unit parameters.

    Custom mappings are validated and applied first. Remaining absolute
    controls are then matched by category: faders to amplitude parameters,
    frequency pots to filter parameters, and whatever is left in order.
    """

    def auto_map(
        self,
        units: Sequence[GraphUnit],
        device: DeviceProfile,
        custom_mappings: Sequence[CustomMapping] = (),
    ) -> list[ControllerMapping]:
        mappable = [
            MappableParameter(unit_id=unit.id, parameter=parameter)
            for unit in units
            for parameter in unit.entry.parameters
            if parameter.controllable
        ]

        results: list[ControllerMapping] = []
        used_controls: set[str] = set()
        used_params: set[tuple[str, str]] = set()

        for control, item in self._validate_custom(custom_mappings, device, units, mappable):
            results.append(ControllerMapping.create(control, item.unit_id, item.parameter))
            used_controls.add(control.name)
            used_params.add(item.key)

        if not mappable:
            return results

        remaining = sorted(
            (item for item in mappable if item.key not in used_params),
            key=lambda item: CATEGORY_PRIORITY.get(item.parameter.category, 9),
        )
        free_controls = [
            control
            for control in device.controls
            if control.name not in used_controls and control.input_type == ControlInputType.ABSOLUTE
        ]

        def assign(controls: list[DeviceControl], candidates: list[MappableParameter]) -> None:
            for control, item in zip(controls, candidates):
                results.append(ControllerMapping.create(control, item.unit_id, item.parameter))
                used_controls.add(control.name)
                used_params.add(item.key)

        amplitude_controls = [c for c in free_controls if c.category == ControlCategory.AMPLITUDE]
        frequency_controls = [c for c in free_controls if c.category == ControlCategory.FREQUENCY]
        general_controls = [c for c in free_controls if c.category == ControlCategory.GENERAL]

        assign(
            amplitude_controls,
            [item for item in remaining if item.parameter.category == ParameterCategory.AMPLITUDE],
        )
        assign(
            frequency_controls,
            [
                item
                for item in remaining
                if item.parameter.category == ParameterCategory.FILTER and item.key not in used_params
            ],
        )

        leftover_controls = [
            control
            for control in [*amplitude_controls, *frequency_controls, *general_controls]
            if control.name not in used_controls
        ]
        assign(leftover_controls, [item for item in remaining if item.key not in used_params])
        return results

    @staticmethod
    def _validate_custom(
        custom_mappings: Sequence[CustomMapping],
        device: DeviceProfile,
        units: Sequence[GraphUnit],
        mappable: Sequence[MappableParameter],
    ) -> list[tuple[DeviceControl, MappableParameter]]:
        controls = {control.name: control for control in device.controls}
        unit_ids = [unit.id for unit in units]
        resolved: list[tuple[DeviceControl, MappableParameter]] = []
        seen_controls: set[str] = set()

        for custom in custom_mappings:
            control = controls.get(custom.control)
            if control is None:
                raise MappingError(
                    f"Control '{custom.control}' not found on device '{device.name}'. "
                    f"Available controls: {', '.join(controls)}"
                )
            if custom.unit not in unit_ids:
                raise MappingError(
                    f"Unit '{custom.unit}' not found. Available units: {', '.join(unit_ids) or '(none)'}"
                )

            candidates = [item for item in mappable if item.unit_id == custom.unit]
            match = next(
                (
                    item
                    for item in candidates
                    if item.parameter.name == custom.parameter or item.parameter.label == custom.parameter
                ),
                None,
            )
            if match is None:
                available = ", ".join(item.parameter.name for item in candidates) or "(none)"
                raise MappingError(
                    f"Parameter '{custom.parameter}' not found on unit '{custom.unit}'. "
                    f"Available parameters: {available}"
                )
            if custom.control in seen_controls:
                raise MappingError(f"Control '{custom.control}' is already mapped")
            seen_controls.add(custom.control)
            resolved.append((control, match))
        return resolved
