import logging
import re

from polynodes.nodes import ConnectionRejection, NodeGraph, NodeType, PortRef


def _image_and_math(graph):
    source = graph.add_node(NodeType.IMAGE_LOADER, (0, 0))
    target = graph.add_node(NodeType.MATH, (300, 0))
    return source, target


def test_add_node_uses_template_and_prefixed_id(graph):
    node_id = graph.add_node(NodeType.COMBINE, (5, 6))

    node = graph.get_node(node_id)
    assert re.fullmatch(r"n_[0-9a-f]{12}", node_id)
    assert node.type == NodeType.COMBINE
    assert (node.x, node.y) == (5.0, 6.0)
    assert [port.name for port in node.inputs] == ["in1", "in2"]


def test_default_position_stays_inside_spawn_band(graph):
    for _ in range(50):
        node = graph.get_node(graph.add_node("generic"))
        assert 100 <= node.x <= 500
        assert 100 <= node.y <= 300


def test_ids_are_never_reused_after_clear(graph):
    issued = {graph.add_node("math") for _ in range(20)}
    graph.clear()
    issued |= {graph.add_node("math") for _ in range(20)}

    assert len(issued) == 40


def test_connection_is_created_between_output_and_input(graph):
    source, target = _image_and_math(graph)

    connection = graph.add_connection(PortRef(source, "image"), PortRef(target, "a"))

    assert connection is not None
    assert re.fullmatch(r"c_[0-9a-f]{12}", connection.id)
    assert graph.connections() == (connection,)
    assert graph.outgoing(source) == (connection,)
    assert graph.incoming(target, "a") == (connection,)


def test_second_connection_to_same_input_replaces_first(graph):
    source, target = _image_and_math(graph)

    first = graph.add_connection(PortRef(source, "image"), PortRef(target, "a"))
    second = graph.add_connection(PortRef(source, "image"), PortRef(target, "a"))

    assert first.id != second.id
    assert graph.connections() == (second,)
    assert graph.get_connection(first.id) is None
    assert graph.connection_to(PortRef(target, "a")) == second


def test_one_output_may_feed_many_inputs(graph):
    source, target = _image_and_math(graph)

    graph.add_connection(PortRef(source, "image"), PortRef(target, "a"))
    graph.add_connection(PortRef(source, "image"), PortRef(target, "b"))

    assert len(graph.outgoing(source, "image")) == 2


def test_remove_node_drops_its_connections(graph):
    source, target = _image_and_math(graph)
    other = graph.add_node(NodeType.COMBINE)
    graph.add_connection(PortRef(source, "image"), PortRef(target, "a"))
    kept = graph.add_connection(PortRef(source, "image"), PortRef(other, "in1"))

    dropped = graph.remove_node(target)

    assert len(dropped) == 1
    assert graph.get_node(target) is None
    assert graph.connections() == (kept,)


def test_remove_unknown_node_is_a_no_op(graph):
    source, target = _image_and_math(graph)
    graph.add_connection(PortRef(source, "image"), PortRef(target, "a"))

    assert graph.remove_node("n_missing") == ()
    assert len(graph.connections()) == 1


def test_rejection_reasons_are_distinct(graph):
    source, target = _image_and_math(graph)

    assert graph.can_connect(PortRef(target, "out"), PortRef(target, "a")) is ConnectionRejection.SELF_LOOP
    assert graph.can_connect(PortRef(source, "image"), PortRef("n_gone", "a")) is ConnectionRejection.UNKNOWN_NODE
    assert graph.can_connect(PortRef(source, "nope"), PortRef(target, "a")) is ConnectionRejection.UNKNOWN_PORT
    assert graph.can_connect(PortRef(target, "a"), PortRef(source, "image")) is ConnectionRejection.WRONG_DIRECTION
    assert graph.can_connect(PortRef(source, "image"), PortRef(target, "out")) is ConnectionRejection.WRONG_DIRECTION
    assert graph.can_connect(PortRef(source, "image"), PortRef(target, "a")) is None


def test_only_unknown_node_is_transient():
    transient = [reason for reason in ConnectionRejection if reason.is_transient]
    assert transient == [ConnectionRejection.UNKNOWN_NODE]


def test_rejected_connections_leave_graph_untouched(graph):
    source, target = _image_and_math(graph)

    assert graph.add_connection(PortRef(target, "out"), PortRef(target, "a")) is None
    assert graph.add_connection(PortRef(source, "image"), PortRef("n_gone", "a")) is None
    assert graph.connections() == ()


def test_rejection_log_marks_transient_reasons(graph, caplog):
    source, target = _image_and_math(graph)
    caplog.set_level(logging.DEBUG, logger="polynodes.nodes.graph")

    graph.add_connection(PortRef(source, "image"), PortRef("n_gone", "a"))
    graph.add_connection(PortRef(target, "out"), PortRef(target, "a"))

    messages = [record.getMessage() for record in caplog.records if "rejected" in record.getMessage()]
    assert len(messages) == 2
    assert "(transient): unknown_node" in messages[0]
    assert "(structural): self_loop" in messages[1]


def test_update_node_and_param(graph):
    node_id = graph.add_node(NodeType.MATH)

    assert graph.update_node(node_id, x=1, y=2, title="Adder")
    assert graph.update_param(node_id, "op", "mul")
    assert not graph.update_node("n_missing", x=1)
    assert not graph.update_param("n_missing", "op", "sub")

    node = graph.get_node(node_id)
    assert (node.x, node.y, node.title) == (1.0, 2.0, "Adder")
    assert node.params["op"] == "mul"


def test_remove_connection(graph):
    source, target = _image_and_math(graph)
    connection = graph.add_connection(PortRef(source, "image"), PortRef(target, "a"))

    assert graph.remove_connection(connection.id)
    assert not graph.remove_connection(connection.id)
    assert graph.connections() == ()


def test_nodes_returns_a_copy(graph):
    graph.add_node(NodeType.MATH)
    nodes = graph.nodes()
    nodes.clear()

    assert not graph.is_empty()


def test_clear_empties_graph():
    graph = NodeGraph()
    source, target = _image_and_math(graph)
    graph.add_connection(PortRef(source, "image"), PortRef(target, "a"))

    graph.clear()

    assert graph.is_empty()
    assert graph.connections() == ()
