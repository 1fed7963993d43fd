from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from polynodes.nodes import Node, NodeGraph

if TYPE_CHECKING:  # pragma: no cover - type checking imports
    from polynodes.service.models import ExecutionResult, ExecutionResults


class SelectionCoordinator:
    """
    Holds the single selected node and the latest execution results, and
    resolves both against the live graph for the inspector panel.
    """

    def __init__(self, graph: NodeGraph) -> None:
        self._graph = graph
        self._selected_id: Optional[str] = None
        self._results: Optional["ExecutionResults"] = None

    @property
    def selected_id(self) -> Optional[str]:
        if self._selected_id is not None and self._graph.get_node(self._selected_id) is None:
            self._selected_id = None
        return self._selected_id

    @property
    def results(self) -> Optional["ExecutionResults"]:
        return self._results

    def select(self, node_id: Optional[str]) -> bool:
        """
        Select ``node_id`` (or nothing). Returns ``True`` when the selection
        actually changed.
        """

        if node_id is not None and self._graph.get_node(node_id) is None:
            node_id = None
        changed = node_id != self.selected_id
        self._selected_id = node_id
        return changed

    def clear(self) -> bool:
        return self.select(None)

    def node_removed(self, node_id: str) -> bool:
        if self._selected_id == node_id:
            self._selected_id = None
            return True
        return False

    def selected_node(self) -> Optional[Node]:
        node_id = self.selected_id
        return self._graph.get_node(node_id) if node_id is not None else None

    def set_results(self, results: Optional["ExecutionResults"]) -> None:
        self._results = results

    def selected_result(self) -> Optional["ExecutionResult"]:
        node_id = self.selected_id
        if node_id is None or self._results is None:
            return None
        return self._results.results.get(node_id)
