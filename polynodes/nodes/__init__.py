""
"Graph model primitives: nodes, ports, connections and the per-type templates."
""

from .base import Node, NodePort, NodeType, PortDirection, PortRef
from .builtin import MATH_OPERATIONS, NodeTemplate, get_node_template, get_node_templates
from .graph import ConnectionRejection, NodeConnection, NodeGraph

__all__ = [
    "ConnectionRejection",
    "MATH_OPERATIONS",
    "Node",
    "NodeConnection",
    "NodeGraph",
    "NodePort",
    "NodeTemplate",
    "NodeType",
    "PortDirection",
    "PortRef",
    "get_node_template",
    "get_node_templates",
]
