from __future__ import annotations

import math

from patchgraph.app.core.config import Settings
from patchgraph.app.core.errors import MalformedGraph
from patchgraph.app.models.graph import ComposedGraph, GraphNode, PatchDocument
from patchgraph.app.models.registry import NodeKind, PdAtom

_ESCAPED_CHARACTERS = (";", ",", "$")


def format_atom(atom: PdAtom) -> str:
    """Render one atom the way Pd writes it back to disk."""
    if isinstance(atom, bool):
        return "1" if atom else "0"
    if isinstance(atom, int):
        return str(atom)
    if isinstance(atom, float):
        if not math.isfinite(atom):
            raise MalformedGraph(f"Pd has no representation for {atom}")
        if atom.is_integer():
            return str(int(atom))
        return f"{atom:.6g}"
    text = str(atom)
    for character in _ESCAPED_CHARACTERS:
        text = text.replace(character, f"\\{character}")
    return text


def _coordinate(value: float) -> str:
    return str(int(round(value)))


class PdSerializer:
    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def header(self) -> str:
        settings = self._settings
        return (
            f"#N canvas {settings.pd_canvas_x} {settings.pd_canvas_y} "
            f"{settings.pd_canvas_width} {settings.pd_canvas_height} {settings.pd_font_size};"
        )

    def serialize(self, document: PatchDocument | ComposedGraph) -> str:
        lines = [self.header()]
        lines.extend(self._node_line(index, node) for index, node in enumerate(document.nodes))

        node_count = len(document.nodes)
        for connection in document.connections:
            if not (0 <= connection.source < node_count and 0 <= connection.target < node_count):
                raise MalformedGraph(
                    f"Connection {connection.source}:{connection.outlet} -> "
                    f"{connection.target}:{connection.inlet} references a node outside 0..{node_count - 1}"
                )
            lines.append(
                f"#X connect {connection.source} {connection.outlet} {connection.target} {connection.inlet};"
            )
        return "\n".join(lines) + "\n"

    @staticmethod
    def _node_line(index: int, node: GraphNode) -> str:
        if node.kind == NodeKind.MODULE:
            raise MalformedGraph(f"Node {index} ('{node.name}') is a rack module and has no Pd form")

        atoms = [format_atom(arg) for arg in node.args]
        if node.kind == NodeKind.OBJ:
            atoms.insert(0, format_atom(node.name))
        body = " ".join([str(node.kind), _coordinate(node.x), _coordinate(node.y), *atoms])
        return f"#X {body};"
