from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from polynodes.nodes import (
    Node,
    NodeGraph,
    NodePort,
    PortDirection,
    PortRef,
    get_node_template,
)

logger = logging.getLogger(__name__)


class GraphSerializer:
    """
    Converts a graph to and from the shape exchanged with the execution
    service and stored on disk:

    ``{"nodes": {id: {id, type, title, x, y, params, inputs, outputs}},
    "connections": [{id, from: {node, port}, to: {node, port}}]}``
    """

    def export_graph(self, graph: NodeGraph) -> Dict[str, Any]:
        data: Dict[str, Any] = {"nodes": {}, "connections": []}

        for node_id, node in graph.nodes().items():
            data["nodes"][node_id] = {
                "id": node.id,
                "type": node.type.value,
                "title": node.title,
                "x": node.x,
                "y": node.y,
                "params": dict(node.params),
                "inputs": [{"name": port.name} for port in node.inputs],
                "outputs": [{"name": port.name} for port in node.outputs],
            }

        for connection in graph.connections():
            data["connections"].append(
                {
                    "id": connection.id,
                    "from": {"node": connection.source.node, "port": connection.source.port},
                    "to": {"node": connection.target.node, "port": connection.target.port},
                }
            )

        return data

    def import_graph(self, graph: NodeGraph, payload: Mapping[str, Any]) -> None:
        """
        Replace the contents of ``graph`` with ``payload``. Ids are kept as
        they are. Entries that would break the graph invariants are dropped.
        """

        if not isinstance(payload, Mapping):
            raise ValueError("Graph payload must be an object.")
        nodes_data = payload.get("nodes", {})
        connections_data = payload.get("connections", [])
        if not isinstance(nodes_data, Mapping):
            raise ValueError("Graph payload 'nodes' must be an object keyed by node id.")
        if not isinstance(connections_data, list):
            raise ValueError("Graph payload 'connections' must be a list.")

        nodes: List[Node] = []
        for key, node_payload in nodes_data.items():
            if not isinstance(node_payload, Mapping):
                continue
            node = self._node_from_payload(str(node_payload.get("id") or key), node_payload)
            if node is not None:
                nodes.append(node)

        graph.clear()
        for node in nodes:
            graph.insert_node(node)

        for connection_payload in connections_data:
            if not isinstance(connection_payload, Mapping):
                continue
            source = connection_payload.get("from")
            target = connection_payload.get("to")
            if not isinstance(source, Mapping) or not isinstance(target, Mapping):
                logger.warning("Skipping malformed connection entry: %r", connection_payload)
                continue
            connection_id = connection_payload.get("id")
            if not all([connection_id, source.get("node"), source.get("port"), target.get("node"), target.get("port")]):
                logger.warning("Skipping incomplete connection entry: %r", connection_payload)
                continue
            connection = graph.add_connection(
                PortRef(str(source["node"]), str(source["port"])),
                PortRef(str(target["node"]), str(target["port"])),
                connection_id=str(connection_id),
            )
            if connection is None:
                logger.warning("Skipping invalid connection %s", connection_id)

    def save(self, path: Path, graph: NodeGraph) -> None:
        path.write_text(json.dumps(self.export_graph(graph), indent=2), encoding="utf-8")

    def read(self, path: Path) -> Dict[str, Any]:
        payload = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise ValueError(f"{path.name} does not contain a graph object.")
        return payload

    def load(self, path: Path, graph: NodeGraph) -> None:
        self.import_graph(graph, self.read(path))

    def _node_from_payload(self, node_id: str, node_payload: Mapping[str, Any]) -> Optional[Node]:
        node_type = node_payload.get("type")
        try:
            template = get_node_template(str(node_type))
        except KeyError:
            logger.warning("Skipping node %s with unknown type %r", node_id, node_type)
            return None

        node = template.instantiate(node_id)
        node.title = str(node_payload.get("title", node.title))
        try:
            node.x = float(node_payload.get("x", 0.0))
            node.y = float(node_payload.get("y", 0.0))
        except (TypeError, ValueError):
            raise ValueError(f"Node {node_id} has a non-numeric position.") from None

        params = node_payload.get("params")
        if isinstance(params, Mapping):
            node.params = dict(params)

        if "inputs" in node_payload:
            node.inputs = self._ports(node_payload["inputs"], PortDirection.INPUT)
        if "outputs" in node_payload:
            node.outputs = self._ports(node_payload["outputs"], PortDirection.OUTPUT)
        return node

    @staticmethod
    def _ports(entries: Iterable[Any], direction: PortDirection) -> List[NodePort]:
        ports: List[NodePort] = []
        seen: set[str] = set()
        if not isinstance(entries, (list, tuple)):
            return ports
        for entry in entries:
            name = entry.get("name") if isinstance(entry, Mapping) else entry
            if not name or str(name) in seen:
                continue
            seen.add(str(name))
            ports.append(NodePort(name=str(name), direction=direction))
        return ports
