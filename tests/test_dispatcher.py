import logging

import pytest

from polynodes.service import ServiceDispatcher
from polynodes.service.dispatcher import _RequestTask


class InlinePool:
    """Runs each task on the calling thread as soon as it is started."""

    def start(self, runnable):
        runnable.run()


class DeletedSignal:
    def emit(self, *args):
        raise RuntimeError("Internal C++ object (_RequestSignals) already deleted.")


class DeletedSignals:
    succeeded = DeletedSignal()
    failed = DeletedSignal()


@pytest.fixture
def dispatcher(qt_app):
    return ServiceDispatcher(pool=InlinePool())


def _boom():
    raise ValueError("server unreachable")


def test_success_callback_sees_released_gate(dispatcher):
    seen = []
    busy_states = []
    dispatcher.busyChanged.connect(busy_states.append)

    assert dispatcher.submit("list_graphs", lambda: ["a"], lambda result: seen.append((result, dispatcher.busy)))

    assert seen == [(["a"], False)]
    assert busy_states == [True, False]


def test_failure_emits_signal_then_runs_failure_callback(dispatcher):
    events = []
    dispatcher.failed.connect(lambda label, error: events.append(("signal", label, str(error))))

    submitted = dispatcher.submit(
        "list_graphs",
        _boom,
        on_success=lambda result: events.append(("success", result)),
        on_failure=lambda error: events.append(("callback", str(error), dispatcher.busy)),
    )

    assert submitted
    assert events == [
        ("signal", "list_graphs", "server unreachable"),
        ("callback", "server unreachable", False),
    ]


def test_failed_request_does_not_block_the_next_one(dispatcher):
    follow_up = []

    def list_images(_error):
        assert dispatcher.submit("list_images", lambda: ["cat.png"], follow_up.append)

    dispatcher.submit("list_graphs", _boom, on_failure=list_images)

    assert follow_up == [["cat.png"]]
    assert not dispatcher.busy


def test_callbacks_are_not_reused_by_later_requests(dispatcher):
    failures = []
    dispatcher.submit("list_graphs", _boom, on_failure=failures.append)
    dispatcher.submit("list_images", _boom)

    assert len(failures) == 1


def test_outcome_is_dropped_when_dispatcher_is_gone(caplog):
    caplog.set_level(logging.WARNING, logger="polynodes.service.dispatcher")

    _RequestTask("run", lambda: {"n_1": {}}, DeletedSignals()).run()
    _RequestTask("save", _boom, DeletedSignals()).run()

    dropped = [record.getMessage() for record in caplog.records if "dispatcher is gone" in record.getMessage()]
    assert dropped == [
        "Dropping outcome of request 'run': its dispatcher is gone",
        "Dropping outcome of request 'save': its dispatcher is gone",
    ]
