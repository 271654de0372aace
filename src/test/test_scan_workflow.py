"""
Tests for the scan workflow state machine
=========================================

Capture -> recognition -> staged result -> accept/reject, plus teardown.
"""

import itertools
import threading
from datetime import datetime, timedelta

import pytest

from src.core.exceptions import DeviceAccessError, RecognitionError
from src.domain.Models.recognition import OutcomeKind
from src.domain.Models.workflow_state import Capturing, Closed, Failed, Idle, Staged
from src.domain.Services.history_log import HistoryLog
from src.application.recognition_adapter import RecognitionAdapter
from src.application.scan_workflow import ScanWorkflow
from src.infrastructure.Normalizer.plate_normalizer import PlateNormalizer
from src.infrastructure.Notifications.queue_notifier import QueueNotifier
from src.test.fakes import StubCapture, ScriptedRecognitionService


def _clock():
    ticks = itertools.count()
    start = datetime(2024, 5, 1, 8, 0, 0)
    return lambda: start + timedelta(seconds=next(ticks))


@pytest.fixture
def make_workflow():
    created = []

    def _make(*responses, capture=None, started=True, **kwargs):
        service = ScriptedRecognitionService(*responses)
        workflow = ScanWorkflow(
            capture=capture or StubCapture(),
            recognizer=RecognitionAdapter(service),
            history=HistoryLog(),
            notifier=QueueNotifier(),
            normalizer=PlateNormalizer(),
            session_id="test",
            clock=_clock(),
            **kwargs,
        )
        created.append(workflow)
        if started:
            assert workflow.start()
        return workflow, service

    yield _make

    for workflow in created:
        workflow.close()


def _transitions(workflow):
    seen = []
    workflow.add_listener(lambda old, new: seen.append((old.name, new.name)))
    return seen


def _titles(workflow):
    return [n.title for n in workflow.notifier.drain()]


# =============================================================================
# Camera acquisition
# =============================================================================

class TestStart:

    def test_trigger_before_start_is_refused(self, make_workflow):
        workflow, service = make_workflow({"plateNumber": "AAA"}, started=False)
        assert workflow.trigger() is None
        assert isinstance(workflow.state, Idle)
        assert service.calls == []

    def test_camera_error_is_recoverable(self, make_workflow):
        capture = StubCapture(fail=True)
        workflow, _ = make_workflow({"plateNumber": "AAA"}, capture=capture, started=False)

        assert workflow.start() is False
        assert _titles(workflow) == ["Camera Error"]
        assert isinstance(workflow.state, Idle)

        capture.fail = False
        assert workflow.start() is True
        assert workflow.is_ready

    def test_facing_and_resolution_hints(self, make_workflow):
        capture = StubCapture()
        make_workflow(capture=capture, preferred_facing="user", ideal_resolution=(1280, 720))
        assert capture.last_request == ("user", (1280, 720))


# =============================================================================
# Capture cycle
# =============================================================================

class TestCaptureCycle:

    def test_plate_is_staged_normalized(self, make_workflow):
        workflow, service = make_workflow({"plateNumber": " abc-123 "})
        seen = _transitions(workflow)

        outcome = workflow.trigger().result(timeout=5)

        assert outcome.kind is OutcomeKind.SUCCESS
        assert isinstance(workflow.state, Staged)
        assert workflow.staged.plate_number == "ABC-123"
        assert seen == [("idle", "capturing"), ("capturing", "staged")]
        assert _titles(workflow) == ["Plate Detected"]
        assert service.calls[0]["photoDataUri"].startswith("data:image/jpeg;base64,")

    def test_default_hint_is_forwarded(self, make_workflow):
        workflow, service = make_workflow({"plateNumber": "A1"}, default_hint="Extract the plate")
        workflow.trigger().result(timeout=5)
        workflow.reject()
        workflow.trigger(hint="red car").result(timeout=5)
        assert [c["prompt"] for c in service.calls] == ["Extract the plate", "red car"]

    def test_empty_result_fails_then_idles(self, make_workflow):
        workflow, _ = make_workflow({"plateNumber": ""})
        seen = _transitions(workflow)

        outcome = workflow.trigger().result(timeout=5)

        assert outcome.kind is OutcomeKind.EMPTY
        assert seen == [("idle", "capturing"), ("capturing", "failed"), ("failed", "idle")]
        assert isinstance(workflow.state, Idle)
        assert len(workflow.history) == 0
        assert _titles(workflow) == ["No Plate Found"]

    @pytest.mark.parametrize("error", [RecognitionError("connection reset"), RuntimeError("boom")])
    def test_service_error_fails_then_idles(self, make_workflow, error):
        workflow, _ = make_workflow(error)
        states = []
        workflow.add_listener(lambda old, new: states.append(new))

        outcome = workflow.trigger().result(timeout=5)

        assert outcome.kind is OutcomeKind.ERROR
        failed = [s for s in states if isinstance(s, Failed)]
        assert len(failed) == 1 and failed[0].reason.value == "error"
        assert isinstance(workflow.state, Idle)
        assert _titles(workflow) == ["Scan Failed"]

    def test_second_trigger_while_capturing_is_noop(self, make_workflow):
        workflow, service = make_workflow({"plateNumber": "AAA"})
        service.gate = threading.Event()

        first = workflow.trigger()
        assert first is not None
        assert workflow.trigger() is None
        assert isinstance(workflow.state, Capturing)

        service.gate.set()
        first.result(timeout=5)
        assert len(service.calls) == 1
        assert isinstance(workflow.state, Staged)

    def test_new_capture_supersedes_staged(self, make_workflow):
        workflow, _ = make_workflow({"plateNumber": "AAA"}, {"plateNumber": "BBB"})
        workflow.trigger().result(timeout=5)
        workflow.trigger().result(timeout=5)
        assert workflow.staged.plate_number == "BBB"
        assert len(workflow.history) == 0

    @pytest.mark.parametrize("retry", [{"plateNumber": "  "}, RecognitionError("connection reset")])
    def test_failed_rescan_keeps_staged(self, make_workflow, retry):
        workflow, _ = make_workflow({"plateNumber": "AAA"}, retry)
        workflow.trigger().result(timeout=5)
        staged = workflow.staged
        seen = _transitions(workflow)

        outcome = workflow.trigger().result(timeout=5)

        assert outcome.kind is not OutcomeKind.SUCCESS
        assert seen == [("staged", "capturing"), ("capturing", "failed"), ("failed", "staged")]
        assert workflow.staged == staged
        assert len(workflow.history) == 0
        assert _titles(workflow)[-1] in ("No Plate Found", "Scan Failed")

        assert workflow.accept().plate_number == "AAA"
        assert len(workflow.history) == 1


# =============================================================================
# Accept / reject
# =============================================================================

class TestDecisions:

    def test_accept_promotes_to_history(self, make_workflow):
        workflow, _ = make_workflow({"plateNumber": "kl 07 ab 1234"})
        workflow.trigger().result(timeout=5)

        record = workflow.accept()

        assert record.plate_number == "KL 07 AB 1234"
        assert record.id
        assert list(workflow.history.render()) == [record]
        assert isinstance(workflow.state, Idle)
        assert workflow.staged is None
        assert _titles(workflow)[-1] == "Saved"

    def test_reject_discards_and_keeps_camera(self, make_workflow):
        workflow, _ = make_workflow({"plateNumber": "AAA"})
        workflow.trigger().result(timeout=5)

        assert workflow.reject() is True
        assert workflow.reject() is False
        assert len(workflow.history) == 0
        assert workflow.is_ready

    def test_decisions_without_staged_result(self, make_workflow):
        workflow, _ = make_workflow({"plateNumber": "AAA"})
        assert workflow.accept() is None
        assert workflow.reject() is False

    def test_listener_added_from_listener(self, make_workflow):
        workflow, _ = make_workflow({"plateNumber": "AAA"})
        late = []

        def _register(old, new):
            if not late:
                late.append(None)
                workflow.add_listener(lambda o, n: late.append(n.name))

        workflow.add_listener(_register)
        workflow.trigger().result(timeout=5)

        assert late == [None, "staged"]

    def test_history_length_equals_accepts(self, make_workflow):
        decisions = [True, False, True, True, False, False, True]
        workflow, _ = make_workflow({"plateNumber": "AAA"})
        staged_seen = []
        workflow.add_listener(lambda old, new: staged_seen.append(isinstance(new, Staged)))

        for accept in decisions:
            workflow.trigger().result(timeout=5)
            workflow.accept() if accept else workflow.reject()

        assert len(workflow.history) == sum(decisions)
        assert staged_seen.count(True) == len(decisions)

    def test_accepted_scans_keep_order(self, make_workflow):
        plates = ["AAA-111", "BBB-222", "CCC-333"]
        workflow, _ = make_workflow(*[{"plateNumber": p} for p in plates])
        for _ in plates:
            workflow.trigger().result(timeout=5)
            workflow.accept()

        records = list(workflow.history.render())
        assert [r.plate_number for r in records] == plates
        assert records[0].timestamp < records[1].timestamp < records[2].timestamp

        workflow.history.clear()
        assert len(workflow.history) == 0


# =============================================================================
# Teardown
# =============================================================================

class TestClose:

    def test_close_releases_camera(self, make_workflow):
        capture = StubCapture()
        workflow, _ = make_workflow({"plateNumber": "AAA"}, capture=capture)

        workflow.close()
        workflow.close()

        assert capture.released == 1
        assert isinstance(workflow.state, Closed)
        assert workflow.trigger() is None
        assert workflow.start() is False

    def test_result_after_close_is_discarded(self, make_workflow):
        capture = StubCapture()
        workflow, service = make_workflow({"plateNumber": "AAA"}, capture=capture)
        service.gate = threading.Event()

        future = workflow.trigger()
        workflow.close()
        service.gate.set()
        future.result(timeout=5)

        assert isinstance(workflow.state, Closed)
        assert workflow.staged is None
        assert capture.released == 1

    def test_close_during_acquire_is_silent(self, make_workflow):
        capture = StubCapture()
        workflow, _ = make_workflow(capture=capture, started=False)

        def _acquire_then_closed(preferred_facing, ideal_resolution):
            workflow.close()
            raise DeviceAccessError("Capture session released during acquisition")

        capture.acquire = _acquire_then_closed

        assert workflow.start() is False
        assert isinstance(workflow.state, Closed)
        assert workflow.notifier.drain() == []

    def test_context_manager(self):
        capture = StubCapture()
        workflow = ScanWorkflow(
            capture=capture,
            recognizer=RecognitionAdapter(ScriptedRecognitionService()),
            history=HistoryLog(),
            notifier=QueueNotifier(),
            normalizer=PlateNormalizer(),
        )
        with workflow:
            assert workflow.is_ready
        assert capture.released == 1
