import gc

from polynodes.editor import NodeLayout
from polynodes.nodes import NodeType, PortDirection
from polynodes.ui.node_graphics import NodeGraphicsItem, PortHandleItem


def _handles(item):
    return [child for child in item.childItems() if isinstance(child, PortHandleItem)]


def test_port_handles_sit_on_port_anchors(qt_app, graph):
    node = graph.get_node(graph.add_node(NodeType.MATH, (0, 0)))
    layout = NodeLayout()
    item = NodeGraphicsItem(node, layout)
    gc.collect()

    positions = sorted((handle.pos().x(), handle.pos().y()) for handle in _handles(item))
    expected = sorted(
        (anchor.x, anchor.y)
        for anchor in (
            layout.local_port_position(node, PortDirection.INPUT, "a"),
            layout.local_port_position(node, PortDirection.INPUT, "b"),
            layout.local_port_position(node, PortDirection.OUTPUT, "out"),
        )
    )
    assert positions == expected


def test_port_handle_press_is_reported_by_node(qt_app, graph):
    node = graph.get_node(graph.add_node(NodeType.IMAGE_LOADER, (0, 0)))
    item = NodeGraphicsItem(node, NodeLayout())
    pressed = []
    item.portPressed.connect(lambda node_id, direction, port: pressed.append((node_id, direction, port)))
    gc.collect()

    (handle,) = _handles(item)
    handle.pressed.emit("output", "image")

    assert pressed == [(node.id, "output", "image")]
