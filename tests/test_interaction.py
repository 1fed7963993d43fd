import pytest

from polynodes.editor import (
    ConnectingFrom,
    DraggingNode,
    Idle,
    InteractionController,
    Point,
    PointerTarget,
    TargetKind,
)
from polynodes.nodes import NodeType, PortRef


class CaptureSpy:
    def __init__(self):
        self.captured = 0
        self.released = 0

    def __call__(self):
        self.captured += 1

        def teardown():
            self.released += 1

        return teardown

    @property
    def active(self):
        return self.captured - self.released


@pytest.fixture
def capture():
    return CaptureSpy()


@pytest.fixture
def controller(graph, capture):
    return InteractionController(graph, capture=capture)


@pytest.fixture
def pair(graph):
    source = graph.add_node(NodeType.IMAGE_LOADER, (0, 0))
    target = graph.add_node(NodeType.MATH, (300, 0))
    return source, target


def test_drag_keeps_grab_offset(graph, controller, capture, pair):
    source, _ = pair
    graph.update_node(source, x=100, y=50)

    assert controller.press_node_body(source, Point(110, 60))
    assert isinstance(controller.state, DraggingNode)
    assert controller.state.grab_offset == Point(10, 10)

    controller.pointer_move(Point(210, 160))
    node = graph.get_node(source)
    assert (node.x, node.y) == (200.0, 150.0)

    controller.pointer_release(Point(220, 170))
    assert (node.x, node.y) == (210.0, 160.0)
    assert isinstance(controller.state, Idle)
    assert capture.captured == 1
    assert capture.released == 1


def test_drag_position_does_not_depend_on_move_count(graph, pair):
    source, target = pair
    single = InteractionController(graph, capture=CaptureSpy())
    stepped = InteractionController(graph, capture=CaptureSpy())

    single.press_node_body(source, Point(5, 5))
    single.pointer_move(Point(305, 125))
    single.pointer_release(Point(305, 125))

    graph.update_node(target, x=0, y=0)
    stepped.press_node_body(target, Point(5, 5))
    for step in range(1, 201):
        stepped.pointer_move(Point(5 + step * 1.5, 5 + (step % 7) * 20))
    stepped.pointer_move(Point(305, 125))
    stepped.pointer_release(Point(305, 125))

    moved_once = graph.get_node(source)
    moved_often = graph.get_node(target)
    assert (moved_once.x, moved_once.y) == (300.0, 120.0)
    assert (moved_often.x, moved_often.y) == (moved_once.x, moved_once.y)


def test_press_ignored_while_gesture_active(controller, capture, pair):
    source, target = pair
    controller.press_node_body(source, Point(0, 0))

    assert not controller.press_node_body(target, Point(300, 0))
    assert controller.dragged_node == source
    assert capture.captured == 1


def test_press_on_unknown_node_does_nothing(controller, capture):
    assert not controller.press_node_body("n_missing", Point(0, 0))
    assert controller.is_idle
    assert capture.captured == 0


def test_click_to_click_connection(graph, controller, capture, pair):
    source, target = pair

    assert controller.click_output_port(PortRef(source, "image"))
    assert controller.pending_source == PortRef(source, "image")

    connection = controller.click_input_port(PortRef(target, "a"))

    assert connection is not None
    assert graph.connections() == (connection,)
    assert controller.is_idle
    assert capture.active == 0


def test_click_input_while_idle_is_ignored(graph, controller, pair):
    _, target = pair

    assert controller.click_input_port(PortRef(target, "a")) is None
    assert graph.connections() == ()


def test_input_on_same_node_cancels_without_connecting(graph, controller, capture, pair):
    _, target = pair
    controller.click_output_port(PortRef(target, "out"))

    assert controller.click_input_port(PortRef(target, "a")) is None
    assert graph.connections() == ()
    assert controller.is_idle
    assert capture.released == 1


def test_second_output_click_abandons_attempt(controller, capture, pair):
    source, target = pair
    controller.click_output_port(PortRef(source, "image"))

    assert not controller.click_output_port(PortRef(target, "out"))
    assert controller.is_idle
    assert capture.active == 0


def test_unknown_output_port_does_not_arm(controller, capture, pair):
    source, _ = pair

    assert not controller.click_output_port(PortRef(source, "nope"))
    assert controller.is_idle
    assert capture.captured == 0


def test_pointer_move_tracks_preview_pointer(controller, pair):
    source, _ = pair
    controller.click_output_port(PortRef(source, "image"))

    controller.pointer_move(Point(42, 24))

    assert controller.state == ConnectingFrom(PortRef(source, "image"), Point(42, 24))


def test_release_over_empty_canvas_cancels(controller, capture, pair):
    source, _ = pair
    controller.click_output_port(PortRef(source, "image"))

    assert controller.pointer_release(Point(900, 900)) is None
    assert controller.is_idle
    assert capture.released == 1


def test_release_over_node_keeps_connection_pending(controller, pair):
    source, target = pair
    controller.click_output_port(PortRef(source, "image"))

    controller.pointer_release(Point(320, 10), PointerTarget(TargetKind.NODE, target))

    assert controller.pending_source == PortRef(source, "image")


def test_release_over_input_port_commits(graph, controller, pair):
    source, target = pair
    controller.click_output_port(PortRef(source, "image"))

    connection = controller.pointer_release(
        Point(300, 60),
        PointerTarget(TargetKind.INPUT_PORT, target, PortRef(target, "a")),
    )

    assert connection is not None
    assert graph.connections() == (connection,)


def test_cancel_runs_teardown_once(controller, capture, pair):
    source, _ = pair
    controller.click_output_port(PortRef(source, "image"))

    controller.cancel()
    controller.cancel()
    controller.reset()

    assert capture.released == 1


def test_removing_dragged_node_ends_gesture(graph, controller, capture, pair):
    source, _ = pair
    controller.press_node_body(source, Point(0, 0))

    controller.node_removed(source)

    assert controller.is_idle
    assert capture.released == 1


def test_drag_ends_when_node_disappears_mid_gesture(graph, controller, capture, pair):
    source, _ = pair
    controller.press_node_body(source, Point(0, 0))
    graph.remove_node(source)

    controller.pointer_move(Point(50, 50))

    assert controller.is_idle
    assert capture.released == 1


def test_removing_other_node_keeps_gesture(controller, pair):
    source, target = pair
    controller.click_output_port(PortRef(source, "image"))

    controller.node_removed(target)

    assert controller.pending_source == PortRef(source, "image")


def test_teardown_error_still_returns_to_idle(graph, pair):
    source, _ = pair

    def capture():
        def teardown():
            raise RuntimeError("listener already gone")

        return teardown

    controller = InteractionController(graph, capture=capture)
    controller.click_output_port(PortRef(source, "image"))

    with pytest.raises(RuntimeError):
        controller.cancel()
    assert controller.is_idle


def test_failed_capture_leaves_controller_idle(graph, pair):
    source, _ = pair

    def capture():
        raise RuntimeError("no viewport")

    controller = InteractionController(graph, capture=capture)

    with pytest.raises(RuntimeError):
        controller.press_node_body(source, Point(0, 0))
    assert controller.is_idle
