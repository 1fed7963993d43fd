import json

import pytest

from polynodes.nodes import NodeGraph, NodeType, PortRef
from polynodes.storage import GraphSerializer


@pytest.fixture
def populated(graph):
    source = graph.add_node(NodeType.IMAGE_LOADER, (10, 20))
    target = graph.add_node(NodeType.MATH, (300, 40))
    graph.update_param(target, "op", "div")
    graph.add_connection(PortRef(source, "image"), PortRef(target, "b"))
    return graph


def test_export_uses_wire_shape(populated):
    data = GraphSerializer().export_graph(populated)

    assert set(data) == {"nodes", "connections"}
    math = next(node for node in data["nodes"].values() if node["type"] == "math")
    assert math["inputs"] == [{"name": "a"}, {"name": "b"}]
    assert math["outputs"] == [{"name": "out"}]
    assert math["params"]["op"] == "div"
    (connection,) = data["connections"]
    assert set(connection) == {"id", "from", "to"}
    assert connection["to"] == {"node": math["id"], "port": "b"}
    json.dumps(data)


def test_round_trip_keeps_ids(populated):
    serializer = GraphSerializer()
    data = serializer.export_graph(populated)

    restored = NodeGraph()
    serializer.import_graph(restored, data)

    assert serializer.export_graph(restored) == data


def test_import_skips_unknown_types_and_dangling_connections():
    graph = NodeGraph()
    payload = {
        "nodes": {
            "n_a": {"id": "n_a", "type": "generic", "x": 0, "y": 0},
            "n_b": {"id": "n_b", "type": "oscillator", "x": 0, "y": 0},
        },
        "connections": [
            {"id": "c_1", "from": {"node": "n_b", "port": "out"}, "to": {"node": "n_a", "port": "in1"}},
            {"id": "c_2", "from": "n_a"},
        ],
    }

    GraphSerializer().import_graph(graph, payload)

    assert list(graph.nodes()) == ["n_a"]
    assert graph.connections() == ()


def test_import_fills_missing_ports_from_template():
    graph = NodeGraph()

    GraphSerializer().import_graph(graph, {"nodes": {"n_a": {"type": "combine"}}})

    node = graph.get_node("n_a")
    assert [port.name for port in node.inputs] == ["in1", "in2"]
    assert node.params == {"in1": "", "in2": ""}


def test_invalid_payload_leaves_graph_untouched(populated):
    before = GraphSerializer().export_graph(populated)

    with pytest.raises(ValueError):
        GraphSerializer().import_graph(populated, {"nodes": {"n_a": {"type": "math", "x": "left"}}})
    with pytest.raises(ValueError):
        GraphSerializer().import_graph(populated, {"nodes": {}, "connections": {}})

    assert GraphSerializer().export_graph(populated) == before


def test_imported_ids_are_not_reissued():
    graph = NodeGraph()
    GraphSerializer().import_graph(graph, {"nodes": {"n_a": {"type": "generic"}}})

    new_id = graph.add_node(NodeType.GENERIC)

    assert new_id != "n_a"
    assert len(graph.nodes()) == 2


def test_save_and_load_file(tmp_path, populated):
    serializer = GraphSerializer()
    path = tmp_path / "graph.json"

    serializer.save(path, populated)
    restored = NodeGraph()
    serializer.load(path, restored)

    assert serializer.export_graph(restored) == serializer.export_graph(populated)


def test_read_rejects_non_object_file(tmp_path):
    path = tmp_path / "graph.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")

    with pytest.raises(ValueError):
        GraphSerializer().read(path)
