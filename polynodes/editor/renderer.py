from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from polynodes.nodes import NodeGraph, PortDirection

from .geometry import GeometryResolver, Point, edge_control_points
from .interaction import ConnectingFrom, InteractionController


@dataclass(frozen=True)
class EdgeCurve:
    """
    A cubic curve from ``start`` to ``end``. ``connection_id`` is ``None`` for
    the preview of a connection that is still being drawn.
    """

    start: Point
    ctrl1: Point
    ctrl2: Point
    end: Point
    connection_id: Optional[str] = None

    @property
    def is_preview(self) -> bool:
        return self.connection_id is None

    @classmethod
    def between(cls, start: Point, end: Point, connection_id: Optional[str] = None) -> "EdgeCurve":
        ctrl1, ctrl2 = edge_control_points(start, end)
        return cls(start, ctrl1, ctrl2, end, connection_id)


class CanvasRenderer:
    """
    Derives the edge geometry of the canvas from the graph and the active
    gesture. Positions are recomputed on every call.
    """

    def __init__(
        self,
        graph: NodeGraph,
        resolver: GeometryResolver,
        interaction: InteractionController,
    ) -> None:
        self._graph = graph
        self._resolver = resolver
        self._interaction = interaction

    def edges(self) -> List[EdgeCurve]:
        curves: List[EdgeCurve] = []
        for connection in self._graph.connections():
            start = self._resolver.port_position(
                connection.source.node, PortDirection.OUTPUT, connection.source.port
            )
            end = self._resolver.port_position(
                connection.target.node, PortDirection.INPUT, connection.target.port
            )
            if start is None or end is None:
                # Endpoint not laid out right now; skip this frame.
                continue
            curves.append(EdgeCurve.between(start, end, connection.id))
        return curves

    def preview(self) -> Optional[EdgeCurve]:
        state = self._interaction.state
        if not isinstance(state, ConnectingFrom) or state.pointer is None:
            return None
        start = self._resolver.port_position(state.source.node, PortDirection.OUTPUT, state.source.port)
        if start is None:
            return None
        return EdgeCurve.between(start, state.pointer)
