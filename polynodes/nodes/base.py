from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class NodeType(str, Enum):
    MATH = "math"
    COMBINE = "combine"
    IMAGE_LOADER = "image_loader"
    WAVE_MULTIPLIER = "wave_multiplier"
    GENERIC = "generic"


class PortDirection(str, Enum):
    INPUT = "input"
    OUTPUT = "output"


@dataclass(frozen=True)
class NodePort:
    """
    Represents a single input or output port on a node.
    """

    name: str
    direction: PortDirection


@dataclass(frozen=True)
class PortRef:
    """
    One end of a connection: a node id and the name of one of its ports.
    """

    node: str
    port: str


@dataclass
class Node:
    """
    A typed unit of computation placed on the canvas.

    Port lists are fixed by the node type when the node is created. Only the
    parameter values, the title and the position change afterwards.
    """

    id: str
    type: NodeType
    title: str
    x: float = 0.0
    y: float = 0.0
    params: Dict[str, object] = field(default_factory=dict)
    inputs: List[NodePort] = field(default_factory=list)
    outputs: List[NodePort] = field(default_factory=list)

    @property
    def position(self) -> tuple[float, float]:
        return self.x, self.y

    def ports(self, direction: PortDirection) -> List[NodePort]:
        return self.inputs if direction == PortDirection.INPUT else self.outputs

    def get_port(self, name: str, direction: PortDirection) -> Optional[NodePort]:
        for port in self.ports(direction):
            if port.name == name:
                return port
        return None
