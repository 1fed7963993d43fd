from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Tuple, Union

from polynodes.nodes import NodeConnection, NodeGraph, NodeType, PortRef
from polynodes.storage import GraphSerializer

from .geometry import GeometryResolver, NodeLayout, Point
from .interaction import InteractionController, PointerCapture
from .renderer import CanvasRenderer
from .selection import SelectionCoordinator

if TYPE_CHECKING:  # pragma: no cover - type checking imports
    from polynodes.service.models import ExecutionResults

logger = logging.getLogger(__name__)


class GraphEditor:
    """
    Editing session for one graph.

    Wraps the graph store with the selection and gesture state so that every
    mutation carries its side effects: new nodes become selected, removing a
    node drops its connections, its selection and any gesture it was part of.
    """

    def __init__(
        self,
        graph: Optional[NodeGraph] = None,
        *,
        layout: Optional[NodeLayout] = None,
        capture: Optional[PointerCapture] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._graph = graph or NodeGraph(rng=rng)
        self._serializer = GraphSerializer()
        self._selection = SelectionCoordinator(self._graph)
        self._interaction = InteractionController(self._graph, capture=capture)
        self._resolver = GeometryResolver(self._graph, layout)
        self._renderer = CanvasRenderer(self._graph, self._resolver, self._interaction)

    @property
    def graph(self) -> NodeGraph:
        return self._graph

    @property
    def selection(self) -> SelectionCoordinator:
        return self._selection

    @property
    def interaction(self) -> InteractionController:
        return self._interaction

    @property
    def resolver(self) -> GeometryResolver:
        return self._resolver

    @property
    def renderer(self) -> CanvasRenderer:
        return self._renderer

    def add_node(
        self,
        node_type: Union[NodeType, str],
        position: Optional[Tuple[float, float]] = None,
    ) -> str:
        node_id = self._graph.add_node(node_type, position)
        self._selection.select(node_id)
        return node_id

    def update_node(
        self,
        node_id: str,
        *,
        x: Optional[float] = None,
        y: Optional[float] = None,
        title: Optional[str] = None,
    ) -> bool:
        return self._graph.update_node(node_id, x=x, y=y, title=title)

    def update_param(self, node_id: str, name: str, value: object) -> bool:
        return self._graph.update_param(node_id, name, value)

    def remove_node(self, node_id: str) -> Tuple[NodeConnection, ...]:
        self._interaction.node_removed(node_id)
        dropped = self._graph.remove_node(node_id)
        self._selection.node_removed(node_id)
        return dropped

    def add_connection(self, source: PortRef, target: PortRef) -> Optional[NodeConnection]:
        return self._graph.add_connection(source, target)

    def remove_connection(self, connection_id: str) -> bool:
        return self._graph.remove_connection(connection_id)

    def clear(self) -> None:
        self._interaction.reset()
        self._graph.clear()
        self._selection.clear()
        self._selection.set_results(None)

    def select(self, node_id: Optional[str]) -> bool:
        return self._selection.select(node_id)

    def press_node_body(self, node_id: str, pointer: Point) -> bool:
        """
        Select ``node_id`` and start dragging it. While another gesture is
        active the press still selects the node but starts no drag. Returns
        ``True`` when the selection or the gesture changed.
        """

        if self._graph.get_node(node_id) is None:
            return False
        selected = self._selection.select(node_id)
        dragging = self._interaction.press_node_body(node_id, pointer)
        return selected or dragging

    def click_empty_canvas(self) -> bool:
        return self._selection.clear()

    def apply_results(self, results: Optional["ExecutionResults"]) -> None:
        self._selection.set_results(results)

    def export_graph(self) -> Dict[str, Any]:
        return self._serializer.export_graph(self._graph)

    def load_graph(self, payload: Mapping[str, Any]) -> None:
        """
        Replace the current graph with ``payload`` (wire shape). On malformed
        input the current graph is left as it was.
        """

        self._interaction.reset()
        self._serializer.import_graph(self._graph, payload)
        self._selection.clear()
        self._selection.set_results(None)
        logger.info(
            "Loaded graph with %d node(s) and %d connection(s)",
            len(self._graph.nodes()),
            len(self._graph.connections()),
        )
