from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from polynodes.nodes import Node, NodeGraph, PortDirection, PortRef


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def __add__(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Point") -> "Point":
        return Point(self.x - other.x, self.y - other.y)

    def distance_sq(self, other: "Point") -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        return dx * dx + dy * dy


@dataclass(frozen=True)
class NodeLayout:
    """
    Box metrics shared by the painted node items and the port resolver, so a
    marker is always drawn where connections are anchored.
    """

    width: float = 220.0
    header_height: float = 38.0
    port_height: float = 24.0
    param_height: float = 18.0
    padding: float = 12.0
    port_radius: float = 6.0

    def port_rows(self, node: Node) -> int:
        return max(1, len(node.inputs), len(node.outputs))

    def params_top(self, node: Node) -> float:
        return self.header_height + self.padding + self.port_rows(node) * self.port_height

    def size(self, node: Node) -> Tuple[float, float]:
        height = self.params_top(node) + self.padding
        if node.params:
            height += len(node.params) * self.param_height + self.padding
        return self.width, height

    def local_port_position(self, node: Node, direction: PortDirection, port_name: str) -> Optional[Point]:
        for index, port in enumerate(node.ports(direction)):
            if port.name != port_name:
                continue
            y = self.header_height + self.padding + index * self.port_height + self.port_height / 2
            x = 0.0 if direction == PortDirection.INPUT else self.width
            return Point(x, y)
        return None


class GeometryResolver:
    """
    Computes port anchors in canvas space from the live graph state.

    Nothing is cached: every call reads the current node position, so an
    anchor can never lag behind a node that is being dragged.
    """

    def __init__(self, graph: NodeGraph, layout: Optional[NodeLayout] = None) -> None:
        self._graph = graph
        self._layout = layout or NodeLayout()

    @property
    def layout(self) -> NodeLayout:
        return self._layout

    def port_position(self, node_id: str, direction: PortDirection, port_name: str) -> Optional[Point]:
        node = self._graph.get_node(node_id)
        if node is None:
            return None
        local = self._layout.local_port_position(node, direction, port_name)
        if local is None:
            return None
        return Point(node.x, node.y) + local

    def port_at(
        self,
        point: Point,
        direction: PortDirection,
        threshold: float = 12.0,
    ) -> Optional[PortRef]:
        threshold_sq = threshold * threshold
        # Topmost node first, matching paint order.
        for node_id, node in reversed(list(self._graph.nodes().items())):
            for port in node.ports(direction):
                anchor = self.port_position(node_id, direction, port.name)
                if anchor is not None and anchor.distance_sq(point) <= threshold_sq:
                    return PortRef(node_id, port.name)
        return None

    def node_at(self, point: Point) -> Optional[str]:
        for node_id, node in reversed(list(self._graph.nodes().items())):
            width, height = self._layout.size(node)
            if node.x <= point.x <= node.x + width and node.y <= point.y <= node.y + height:
                return node_id
        return None


def edge_control_points(start: Point, end: Point, min_offset: float = 40.0) -> Tuple[Point, Point]:
    """
    Control points of the cubic curve joining an output anchor to an input
    anchor. The horizontal pull grows with the horizontal distance and never
    drops below ``min_offset``.
    """

    dx = max(abs(end.x - start.x) * 0.5, min_offset)
    return Point(start.x + dx, start.y), Point(end.x - dx, end.y)
