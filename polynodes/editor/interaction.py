"""
Pointer gesture state machine for the node canvas.

A gesture is either a node drag or a connection draw. The active gesture is
one of three immutable states, so an impossible mix such as dragging while
connecting cannot be represented.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Optional, Union

from polynodes.nodes import NodeConnection, NodeGraph, PortDirection, PortRef

from .geometry import GeometryResolver, Point

logger = logging.getLogger(__name__)

Teardown = Callable[[], None]
PointerCapture = Callable[[], Teardown]


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class DraggingNode:
    node_id: str
    grab_offset: Point


@dataclass(frozen=True)
class ConnectingFrom:
    source: PortRef
    pointer: Optional[Point] = None


InteractionState = Union[Idle, DraggingNode, ConnectingFrom]


class TargetKind(Enum):
    EMPTY = auto()
    NODE = auto()
    INPUT_PORT = auto()
    OUTPUT_PORT = auto()


@dataclass(frozen=True)
class PointerTarget:
    kind: TargetKind
    node_id: Optional[str] = None
    port: Optional[PortRef] = None


EMPTY_TARGET = PointerTarget(TargetKind.EMPTY)


def target_at(resolver: GeometryResolver, point: Point) -> PointerTarget:
    """
    Classify what lies under ``point``. Port markers win over node bodies.
    """

    port = resolver.port_at(point, PortDirection.INPUT)
    if port is not None:
        return PointerTarget(TargetKind.INPUT_PORT, port.node, port)
    port = resolver.port_at(point, PortDirection.OUTPUT)
    if port is not None:
        return PointerTarget(TargetKind.OUTPUT_PORT, port.node, port)
    node_id = resolver.node_at(point)
    if node_id is not None:
        return PointerTarget(TargetKind.NODE, node_id)
    return EMPTY_TARGET


def _no_capture() -> Teardown:
    return lambda: None


class InteractionController:
    """
    Tracks the transient drag/connect gesture and commits its outcome to the
    graph.

    ``capture`` is called when a gesture starts and must attach whatever
    pointer listeners the gesture needs; it returns the teardown callable,
    which runs exactly once when the gesture ends for any reason.
    """

    def __init__(
        self,
        graph: NodeGraph,
        capture: Optional[PointerCapture] = None,
    ) -> None:
        self._graph = graph
        self._capture = capture or _no_capture
        self._state: InteractionState = Idle()
        self._teardown: Optional[Teardown] = None

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def is_idle(self) -> bool:
        return isinstance(self._state, Idle)

    @property
    def pending_source(self) -> Optional[PortRef]:
        if isinstance(self._state, ConnectingFrom):
            return self._state.source
        return None

    @property
    def dragged_node(self) -> Optional[str]:
        if isinstance(self._state, DraggingNode):
            return self._state.node_id
        return None

    def set_capture(self, capture: Optional[PointerCapture]) -> None:
        self._capture = capture or _no_capture

    def press_node_body(self, node_id: str, pointer: Point) -> bool:
        if not self.is_idle:
            logger.debug("Ignoring press on %s while a gesture is active", node_id)
            return False
        node = self._graph.get_node(node_id)
        if node is None:
            return False
        grab_offset = pointer - Point(node.x, node.y)
        self._begin(DraggingNode(node_id=node_id, grab_offset=grab_offset))
        return True

    def click_output_port(self, ref: PortRef) -> bool:
        """
        Arm ``ref`` as the source of a new connection. Clicking an output while
        another is armed abandons the first attempt instead.
        """

        if isinstance(self._state, ConnectingFrom):
            self._finish()
            return False
        if not self.is_idle:
            return False
        if self._graph.get_port(ref, PortDirection.OUTPUT) is None:
            return False
        self._begin(ConnectingFrom(source=ref))
        return True

    def click_input_port(self, ref: PortRef) -> Optional[NodeConnection]:
        state = self._state
        if not isinstance(state, ConnectingFrom):
            return None
        try:
            if ref.node == state.source.node:
                return None
            connection = self._graph.add_connection(state.source, ref)
        finally:
            self._finish()
        return connection

    def pointer_move(self, pointer: Point) -> None:
        state = self._state
        if isinstance(state, DraggingNode):
            position = pointer - state.grab_offset
            if not self._graph.update_node(state.node_id, x=position.x, y=position.y):
                self._finish()
        elif isinstance(state, ConnectingFrom):
            self._state = ConnectingFrom(source=state.source, pointer=pointer)

    def pointer_release(self, pointer: Point, target: PointerTarget = EMPTY_TARGET) -> Optional[NodeConnection]:
        state = self._state
        if isinstance(state, DraggingNode):
            self.pointer_move(pointer)
            self._finish()
            return None
        if isinstance(state, ConnectingFrom):
            if target.kind is TargetKind.INPUT_PORT and target.port is not None:
                return self.click_input_port(target.port)
            if target.kind is TargetKind.EMPTY:
                self._finish()
        return None

    def cancel(self) -> None:
        if not self.is_idle:
            self._finish()

    def node_removed(self, node_id: str) -> None:
        state = self._state
        if isinstance(state, DraggingNode) and state.node_id == node_id:
            self._finish()
        elif isinstance(state, ConnectingFrom) and state.source.node == node_id:
            self._finish()

    def reset(self) -> None:
        self._finish()

    def _begin(self, state: InteractionState) -> None:
        self._teardown = self._capture()
        self._state = state

    def _finish(self) -> None:
        teardown, self._teardown = self._teardown, None
        try:
            if teardown is not None:
                teardown()
        finally:
            self._state = Idle()
