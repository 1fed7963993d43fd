"""
Headless editing engine: geometry, gestures, selection and edge derivation.

Nothing in this package depends on Qt; the widgets in :mod:`polynodes.ui`
drive it with canvas-space points.
"""

from .geometry import GeometryResolver, NodeLayout, Point, edge_control_points
from .interaction import (
    ConnectingFrom,
    DraggingNode,
    Idle,
    InteractionController,
    PointerTarget,
    TargetKind,
    target_at,
)
from .renderer import CanvasRenderer, EdgeCurve
from .selection import SelectionCoordinator
from .session import GraphEditor

__all__ = [
    "CanvasRenderer",
    "ConnectingFrom",
    "DraggingNode",
    "EdgeCurve",
    "GeometryResolver",
    "GraphEditor",
    "Idle",
    "InteractionController",
    "NodeLayout",
    "Point",
    "PointerTarget",
    "SelectionCoordinator",
    "TargetKind",
    "edge_control_points",
    "target_at",
]
