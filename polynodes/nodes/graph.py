from __future__ import annotations

import logging
import random
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple, Union

from .base import Node, NodePort, NodeType, PortDirection, PortRef
from .builtin import get_node_template

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NodeConnection:
    id: str
    source: PortRef
    target: PortRef

    def touches(self, node_id: str) -> bool:
        return self.source.node == node_id or self.target.node == node_id


class ConnectionRejection(Enum):
    """
    Why a connection request was turned down.

    ``UNKNOWN_NODE`` is expected when a click races the removal of a node.
    The other reasons are requests the graph never allows.
    """

    SELF_LOOP = "self_loop"
    UNKNOWN_NODE = "unknown_node"
    UNKNOWN_PORT = "unknown_port"
    WRONG_DIRECTION = "wrong_direction"

    @property
    def is_transient(self) -> bool:
        return self is ConnectionRejection.UNKNOWN_NODE


class NodeGraph:
    """
    In-memory representation of the node graph used by the editor.

    Every mutation keeps the graph consistent: ids are never reused within a
    session, each input port has at most one incoming connection and no
    connection refers to a node that is gone.
    """

    DEFAULT_ORIGIN = (100.0, 100.0)
    DEFAULT_SPREAD = (400.0, 200.0)

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._nodes: Dict[str, Node] = {}
        self._connections: List[NodeConnection] = []
        self._issued_ids: Set[str] = set()
        self._rng = rng or random.Random()

    def add_node(
        self,
        node_type: Union[NodeType, str],
        position: Optional[Tuple[float, float]] = None,
    ) -> str:
        template = get_node_template(node_type)
        node_id = self._new_id("n")
        if position is None:
            position = self.default_position()
        node = template.instantiate(node_id, *position)
        self._nodes[node_id] = node
        logger.debug("Added %s node %s at (%.1f, %.1f)", node.type.value, node_id, node.x, node.y)
        return node_id

    def insert_node(self, node: Node) -> None:
        """
        Insert a fully built node, keeping its id. Used when loading graphs.
        """

        self._issued_ids.add(node.id)
        self._nodes[node.id] = node

    def update_node(
        self,
        node_id: str,
        *,
        x: Optional[float] = None,
        y: Optional[float] = None,
        title: Optional[str] = None,
    ) -> bool:
        node = self._nodes.get(node_id)
        if node is None:
            return False
        if x is not None:
            node.x = float(x)
        if y is not None:
            node.y = float(y)
        if title is not None:
            node.title = str(title)
        return True

    def update_param(self, node_id: str, name: str, value: object) -> bool:
        node = self._nodes.get(node_id)
        if node is None:
            return False
        node.params[name] = value
        return True

    def remove_node(self, node_id: str) -> Tuple[NodeConnection, ...]:
        if self._nodes.pop(node_id, None) is None:
            return tuple()
        dropped = tuple(connection for connection in self._connections if connection.touches(node_id))
        self._connections = [
            connection
            for connection in self._connections
            if not connection.touches(node_id)
        ]
        logger.debug("Removed node %s and %d connection(s)", node_id, len(dropped))
        return dropped

    def get_node(self, node_id: str) -> Optional[Node]:
        return self._nodes.get(node_id)

    def get_port(self, ref: PortRef, direction: PortDirection) -> Optional[NodePort]:
        node = self._nodes.get(ref.node)
        if node is None:
            return None
        return node.get_port(ref.port, direction)

    def can_connect(self, source: PortRef, target: PortRef) -> Optional[ConnectionRejection]:
        if source.node == target.node:
            return ConnectionRejection.SELF_LOOP

        source_node = self._nodes.get(source.node)
        target_node = self._nodes.get(target.node)
        if source_node is None or target_node is None:
            return ConnectionRejection.UNKNOWN_NODE

        if source_node.get_port(source.port, PortDirection.OUTPUT) is None:
            if source_node.get_port(source.port, PortDirection.INPUT) is not None:
                return ConnectionRejection.WRONG_DIRECTION
            return ConnectionRejection.UNKNOWN_PORT
        if target_node.get_port(target.port, PortDirection.INPUT) is None:
            if target_node.get_port(target.port, PortDirection.OUTPUT) is not None:
                return ConnectionRejection.WRONG_DIRECTION
            return ConnectionRejection.UNKNOWN_PORT

        return None

    def add_connection(
        self,
        source: PortRef,
        target: PortRef,
        connection_id: Optional[str] = None,
    ) -> Optional[NodeConnection]:
        """
        Connect an output port to an input port.

        A connection already feeding ``target`` is replaced. Requests that
        would break the graph invariants are ignored and return ``None``.
        """

        reason = self.can_connect(source, target)
        if reason is not None:
            logger.debug(
                "Connection %s.%s -> %s.%s rejected (%s): %s",
                source.node,
                source.port,
                target.node,
                target.port,
                "transient" if reason.is_transient else "structural",
                reason.value,
            )
            return None

        if connection_id is None:
            connection_id = self._new_id("c")
        else:
            self._issued_ids.add(connection_id)

        self._connections = [
            connection
            for connection in self._connections
            if connection.target != target and connection.id != connection_id
        ]
        connection = NodeConnection(connection_id, source, target)
        self._connections.append(connection)
        return connection

    def remove_connection(self, connection_id: str) -> bool:
        remaining = [connection for connection in self._connections if connection.id != connection_id]
        removed = len(remaining) != len(self._connections)
        self._connections = remaining
        return removed

    def get_connection(self, connection_id: str) -> Optional[NodeConnection]:
        for connection in self._connections:
            if connection.id == connection_id:
                return connection
        return None

    def connection_to(self, target: PortRef) -> Optional[NodeConnection]:
        for connection in self._connections:
            if connection.target == target:
                return connection
        return None

    def nodes(self) -> Dict[str, Node]:
        return dict(self._nodes)

    def connections(self) -> Tuple[NodeConnection, ...]:
        return tuple(self._connections)

    def outgoing(self, node_id: str, port_name: Optional[str] = None) -> Tuple[NodeConnection, ...]:
        return tuple(
            connection
            for connection in self._connections
            if connection.source.node == node_id
            and (port_name is None or connection.source.port == port_name)
        )

    def incoming(self, node_id: str, port_name: Optional[str] = None) -> Tuple[NodeConnection, ...]:
        return tuple(
            connection
            for connection in self._connections
            if connection.target.node == node_id
            and (port_name is None or connection.target.port == port_name)
        )

    def is_empty(self) -> bool:
        return not self._nodes

    def clear(self) -> None:
        # Issued ids are kept so nothing created later can collide with them.
        self._nodes.clear()
        self._connections.clear()

    def _new_id(self, prefix: str) -> str:
        while True:
            candidate = f"{prefix}_{uuid.uuid4().hex[:12]}"
            if candidate not in self._issued_ids:
                self._issued_ids.add(candidate)
                return candidate

    def default_position(self) -> Tuple[float, float]:
        """
        A pseudo-random spot inside the band where new nodes are dropped.
        """

        origin_x, origin_y = self.DEFAULT_ORIGIN
        spread_x, spread_y = self.DEFAULT_SPREAD
        return (
            origin_x + self._rng.random() * spread_x,
            origin_y + self._rng.random() * spread_y,
        )
