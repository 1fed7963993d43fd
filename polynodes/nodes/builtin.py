from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Union

from .base import Node, NodePort, NodeType, PortDirection


MATH_OPERATIONS: Sequence[tuple[str, str]] = (
    ("add", "+"),
    ("sub", "-"),
    ("mul", "*"),
    ("div", "/"),
)


@dataclass(frozen=True)
class NodeTemplate:
    """
    Describes how to instantiate a node of one type for the editor.
    """

    type: NodeType
    title: str
    description: str
    input_ports: Sequence[str] = field(default_factory=tuple)
    output_ports: Sequence[str] = field(default_factory=tuple)
    default_params: Dict[str, object] = field(default_factory=dict)

    def instantiate(self, node_id: str, x: float = 0.0, y: float = 0.0) -> Node:
        return Node(
            id=node_id,
            type=self.type,
            title=self.title,
            x=float(x),
            y=float(y),
            params=dict(self.default_params),
            inputs=[NodePort(name=name, direction=PortDirection.INPUT) for name in self.input_ports],
            outputs=[NodePort(name=name, direction=PortDirection.OUTPUT) for name in self.output_ports],
        )


_TEMPLATES: List[NodeTemplate] = [
    NodeTemplate(
        type=NodeType.MATH,
        title="Math",
        description="Applies an arithmetic operation to two operands.",
        input_ports=("a", "b"),
        output_ports=("out",),
        default_params={"a": "0", "b": "0", "op": "add"},
    ),
    NodeTemplate(
        type=NodeType.COMBINE,
        title="Combine",
        description="Combines two inputs into a single value.",
        input_ports=("in1", "in2"),
        output_ports=("out",),
        default_params={"in1": "", "in2": ""},
    ),
    NodeTemplate(
        type=NodeType.IMAGE_LOADER,
        title="Image loader",
        description="Loads an image from the server's image folder.",
        input_ports=(),
        output_ports=("image",),
        default_params={"filename": ""},
    ),
    NodeTemplate(
        type=NodeType.WAVE_MULTIPLIER,
        title="Wave Multiplier",
        description="Repeats a wave a number of times.",
        input_ports=("in_wave", "n_times"),
        output_ports=("out",),
        default_params={"in_wave": "", "n_times": "1"},
    ),
    NodeTemplate(
        type=NodeType.GENERIC,
        title="Generic",
        description="Passes a single value through.",
        input_ports=("in1",),
        output_ports=("out",),
        default_params={"value": ""},
    ),
]


def build_template_map(templates: Iterable[NodeTemplate]) -> Dict[NodeType, NodeTemplate]:
    """
    Index ``templates`` by type. Every NodeType needs exactly one template.
    """

    template_map: Dict[NodeType, NodeTemplate] = {}
    for template in templates:
        if template.type in template_map:
            raise RuntimeError(f"duplicate node template for {template.type.value!r}")
        template_map[template.type] = template
    missing = sorted(node_type.value for node_type in set(NodeType) - set(template_map))
    if missing:
        raise RuntimeError(f"node template table is incomplete: {', '.join(missing)}")
    return template_map


_TEMPLATE_MAP = build_template_map(_TEMPLATES)


def get_node_templates() -> Iterable[NodeTemplate]:
    """
    Return an iterable of all registered node templates, in toolbar order.
    """

    return tuple(_TEMPLATES)


def get_node_template(node_type: Union[NodeType, str]) -> NodeTemplate:
    """
    Look up a node template by its type tag.

    Raises ``KeyError`` for tags outside the closed set of node types.
    """

    try:
        key = NodeType(node_type)
    except ValueError:
        raise KeyError(node_type) from None
    return _TEMPLATE_MAP[key]
