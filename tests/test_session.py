import pytest

from polynodes.editor import Point
from polynodes.nodes import NodeType, PortRef
from polynodes.service import ExecutionResults


def test_added_node_becomes_selected(editor):
    node_id = editor.add_node(NodeType.MATH)

    assert editor.selection.selected_id == node_id
    assert editor.selection.selected_node().type == NodeType.MATH


def test_replace_on_conflict_then_remove_scenario(editor):
    a = editor.add_node(NodeType.IMAGE_LOADER, (0, 0))
    b = editor.add_node(NodeType.MATH)
    interaction = editor.interaction

    interaction.click_output_port(PortRef(a, "image"))
    first = interaction.click_input_port(PortRef(b, "a"))
    interaction.click_output_port(PortRef(a, "image"))
    second = interaction.click_input_port(PortRef(b, "a"))

    connections = editor.graph.connections()
    assert len(connections) == 1
    assert connections[0] == second
    assert (second.source, second.target) == (PortRef(a, "image"), PortRef(b, "a"))
    assert editor.graph.get_connection(first.id) is None

    assert editor.selection.selected_id == b
    editor.remove_node(b)

    assert editor.graph.connections() == ()
    assert editor.selection.selected_id is None


def test_removing_unselected_node_keeps_selection(editor):
    a = editor.add_node(NodeType.MATH)
    b = editor.add_node(NodeType.COMBINE)
    editor.select(a)

    editor.remove_node(b)

    assert editor.selection.selected_id == a


def test_removing_pending_source_cancels_connection(editor):
    a = editor.add_node(NodeType.IMAGE_LOADER)
    editor.interaction.click_output_port(PortRef(a, "image"))

    editor.remove_node(a)

    assert editor.interaction.is_idle


def test_press_node_body_selects_and_drags(editor):
    a = editor.add_node(NodeType.MATH, (10, 10))
    b = editor.add_node(NodeType.COMBINE, (400, 10))

    assert editor.press_node_body(a, Point(20, 20))
    assert editor.selection.selected_id == a
    assert editor.interaction.dragged_node == a

    assert editor.press_node_body(b, Point(410, 20))
    assert editor.selection.selected_id == b
    assert editor.interaction.dragged_node == a


def test_press_node_body_selects_while_connection_is_pending(editor):
    a = editor.add_node(NodeType.IMAGE_LOADER, (0, 0))
    b = editor.add_node(NodeType.MATH, (400, 0))
    editor.selection.select(a)
    editor.interaction.click_output_port(PortRef(a, "image"))

    assert editor.press_node_body(b, Point(420, 10))
    assert editor.selection.selected_id == b
    assert editor.interaction.pending_source == PortRef(a, "image")
    assert editor.interaction.dragged_node is None


def test_press_unknown_node_body_changes_nothing(editor):
    a = editor.add_node(NodeType.MATH, (10, 10))

    assert not editor.press_node_body("n_missing", Point(20, 20))
    assert editor.selection.selected_id == a
    assert editor.interaction.dragged_node is None


def test_click_empty_canvas_clears_selection(editor):
    editor.add_node(NodeType.MATH)

    assert editor.click_empty_canvas()
    assert editor.selection.selected_id is None
    assert not editor.click_empty_canvas()


def test_select_unknown_node_selects_nothing(editor):
    editor.add_node(NodeType.MATH)

    editor.select("n_missing")

    assert editor.selection.selected_id is None


def test_selected_result_is_looked_up_by_node(editor):
    node_id = editor.add_node(NodeType.MATH)
    results = ExecutionResults.from_payload(
        {"ok": True, "results": {node_id: {"type": "number", "value": 3}}, "log": []}
    )

    editor.apply_results(results)

    assert editor.selection.selected_result().value == 3
    editor.select(None)
    assert editor.selection.selected_result() is None


def test_clear_resets_everything(editor):
    a = editor.add_node(NodeType.IMAGE_LOADER)
    editor.add_node(NodeType.MATH)
    editor.apply_results(ExecutionResults(ok=True))
    editor.interaction.click_output_port(PortRef(a, "image"))

    editor.clear()

    assert editor.graph.is_empty()
    assert editor.selection.selected_id is None
    assert editor.selection.results is None
    assert editor.interaction.is_idle


def test_load_graph_replaces_model(editor):
    editor.add_node(NodeType.GENERIC)
    payload = {
        "nodes": {
            "n_a": {"id": "n_a", "type": "image_loader", "title": "Src", "x": 1, "y": 2,
                    "params": {"filename": "cat.png"}, "inputs": [], "outputs": [{"name": "image"}]},
            "n_b": {"id": "n_b", "type": "math", "title": "Math", "x": 300, "y": 2,
                    "params": {"a": "0", "b": "0", "op": "mul"},
                    "inputs": [{"name": "a"}, {"name": "b"}], "outputs": [{"name": "out"}]},
        },
        "connections": [{"id": "c_1", "from": {"node": "n_a", "port": "image"}, "to": {"node": "n_b", "port": "a"}}],
    }

    editor.load_graph(payload)

    assert set(editor.graph.nodes()) == {"n_a", "n_b"}
    assert editor.graph.get_connection("c_1") is not None
    assert editor.selection.selected_id is None


def test_load_graph_rejects_malformed_payload(editor):
    node_id = editor.add_node(NodeType.MATH)

    with pytest.raises(ValueError):
        editor.load_graph({"nodes": [], "connections": []})

    assert editor.graph.get_node(node_id) is not None
