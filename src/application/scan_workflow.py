import logging
import threading
import time
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from src.core.exceptions import DeviceAccessError, ScannerError
from src.domain.Interfaces.capture_session import ICaptureSession
from src.domain.Interfaces.notifier import INotifier
from src.domain.Interfaces.text_normalizer import ITextNormalizer
from src.domain.Models.notification import Notification, DESTRUCTIVE
from src.domain.Models.recognition import OutcomeKind, RecognitionOutcome
from src.domain.Models.scan_record import ScanRecord, StagedResult
from src.domain.Models.workflow_state import (
    Capturing, Closed, Failed, FailureReason, Idle, Staged, WorkflowState,
)
from src.domain.Services.history_log import HistoryLog
from src.application.recognition_adapter import RecognitionAdapter
from src.monitoring.metrics import (
    scans_triggered_total, recognition_outcomes_total, recognition_latency,
    staged_decisions_total, history_size,
)

logger = logging.getLogger(__name__)

TransitionListener = Callable[[WorkflowState, WorkflowState], None]

NO_PLATE_MESSAGE = "Could not identify a license plate. Try a different angle or better lighting."
SCAN_FAILED_MESSAGE = "An error occurred during OCR scanning."


class ScanWorkflow:
    """
    Máquina de estados captura -> inferencia -> stage -> aceptar/descartar.

    Idle --trigger--> Capturing --(placa)--> Staged --accept/reject--> Idle
                                --(vacío / error)--> Failed --> Idle
    Cualquier estado --close--> Closed (libera la cámara).

    El estado es un único valor (ver workflow_state). La captura y la
    llamada al servicio corren en un executor de un solo worker; trigger()
    devuelve el Future con el RecognitionOutcome del ciclo.
    """

    def __init__(
        self,
        capture: ICaptureSession,
        recognizer: RecognitionAdapter,
        history: HistoryLog,
        notifier: INotifier,
        normalizer: ITextNormalizer,
        session_id: str = "default",
        preferred_facing: str = "environment",
        ideal_resolution: Tuple[int, int] = (1920, 1080),
        default_hint: Optional[str] = None,
        clock: Callable[[], datetime] = datetime.now,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.capture = capture
        self.recognizer = recognizer
        self.history = history
        self.notifier = notifier
        self.normalizer = normalizer

        self.session_id = session_id
        self.preferred_facing = preferred_facing
        self.ideal_resolution = ideal_resolution
        self.default_hint = default_hint
        self.clock = clock

        self._lock = threading.RLock()
        self._state: WorkflowState = Idle()
        self._inflight: Optional[Future] = None
        self._listeners: List[TransitionListener] = []

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=f"scan-{session_id}"
        )

    # ---------------------------------------------------------
    # STATE
    # ---------------------------------------------------------
    @property
    def state(self) -> WorkflowState:
        with self._lock:
            return self._state

    @property
    def staged(self) -> Optional[StagedResult]:
        state = self.state
        return state.result if isinstance(state, Staged) else None

    @property
    def is_ready(self) -> bool:
        return self.capture.is_ready

    def add_listener(self, listener: TransitionListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def _transition(self, new_state: WorkflowState) -> None:
        # llamar siempre con self._lock tomado
        old_state, self._state = self._state, new_state
        logger.debug("[%s] %s -> %s", self.session_id, old_state.name, new_state.name)
        for listener in list(self._listeners):
            try:
                listener(old_state, new_state)
            except Exception:
                logger.exception("Error en listener de transición")

    # ---------------------------------------------------------
    # START / CLOSE
    # ---------------------------------------------------------
    def start(self) -> bool:
        """Adquiere la cámara. False si no se pudo (se puede reintentar)."""
        if isinstance(self.state, Closed):
            logger.warning(f"[{self.session_id}] start() sobre un workflow cerrado")
            return False

        try:
            self.capture.acquire(self.preferred_facing, self.ideal_resolution)
        except DeviceAccessError as e:
            if isinstance(self.state, Closed):
                logger.info(f"[{self.session_id}] Apertura de cámara cancelada por close()")
                return False
            logger.error(f"📷 [{self.session_id}] Camera access denied: {e.message}")
            self.notifier.notify(Notification(
                "Camera Error",
                "Could not access camera. Please check permissions.",
                DESTRUCTIVE,
            ))
            return False

        # close() llegó mientras se abría la cámara
        if isinstance(self.state, Closed):
            self.capture.release()
            return False
        return True

    def close(self) -> None:
        with self._lock:
            if isinstance(self._state, Closed):
                return
            self._transition(Closed())
            self._inflight = None

        try:
            self.capture.release()
        finally:
            if self._owns_executor:
                self._executor.shutdown(wait=False, cancel_futures=True)
        logger.info(f"🛑 [{self.session_id}] Workflow cerrado")

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    # ---------------------------------------------------------
    # TRIGGER
    # ---------------------------------------------------------
    def trigger(self, hint: Optional[str] = None) -> Optional[Future]:
        """
        Lanza un ciclo captura + reconocimiento. Devuelve None (sin cambiar
        nada) si la cámara no está lista o ya hay una captura en curso.
        Un resultado en stage se conserva hasta que la nueva captura
        traiga otra placa; si la captura falla o sale vacía, vuelve a stage.
        """
        with self._lock:
            state = self._state
            if isinstance(state, Closed):
                logger.warning(f"[{self.session_id}] trigger() sobre un workflow cerrado")
                return None
            if isinstance(state, Capturing) or self._inflight is not None:
                logger.debug("[%s] Captura en curso, trigger ignorado", self.session_id)
                return None
            if not self.capture.is_ready:
                logger.debug("[%s] Cámara no lista, trigger ignorado", self.session_id)
                return None
            previous = state.result if isinstance(state, Staged) else None

            hint = hint or self.default_hint
            self._transition(Capturing(hint=hint, started_at=time.time(), previous=previous))
            scans_triggered_total.labels(session_id=self.session_id).inc()

            future = self._executor.submit(self._run_cycle, hint)
            self._inflight = future
            return future

    def _run_cycle(self, hint: Optional[str]) -> RecognitionOutcome:
        started = time.perf_counter()
        try:
            image = self.capture.capture_frame()
            result = self.recognizer.recognize(image=image, hint=hint)
            outcome = RecognitionOutcome.from_result(result)
        except ScannerError as e:
            logger.warning(f"[{self.session_id}] Scan failed: {e.message}")
            outcome = RecognitionOutcome.failure(e)
        except Exception as e:
            logger.exception(f"❌ [{self.session_id}] Scan failed")
            outcome = RecognitionOutcome.failure(e)

        recognition_latency.labels(session_id=self.session_id).set(time.perf_counter() - started)
        self._complete(outcome)
        return outcome

    def _complete(self, outcome: RecognitionOutcome) -> None:
        with self._lock:
            self._inflight = None
            if isinstance(self._state, Closed):
                logger.info(f"[{self.session_id}] Resultado descartado: workflow cerrado")
                return

            recognition_outcomes_total.labels(session_id=self.session_id, outcome=outcome.kind.value).inc()
            previous = self._state.previous if isinstance(self._state, Capturing) else None

            plate = ""
            if outcome.kind is OutcomeKind.SUCCESS:
                # único punto de normalización
                plate = self.normalizer.normalize(outcome.plate_number)

            if plate:
                if previous is not None:
                    logger.info(f"[{self.session_id}] {previous.plate_number} reemplazada por {plate}")
                    staged_decisions_total.labels(session_id=self.session_id, decision="superseded").inc()
                self._transition(Staged(StagedResult(plate_number=plate, captured_at=self.clock())))
                notification = Notification("Plate Detected", f"Identified: {plate}")
            elif outcome.kind is OutcomeKind.ERROR:
                self._transition(Failed(FailureReason.ERROR, outcome.error or SCAN_FAILED_MESSAGE))
                notification = Notification("Scan Failed", SCAN_FAILED_MESSAGE, DESTRUCTIVE)
            else:
                self._transition(Failed(FailureReason.EMPTY, NO_PLATE_MESSAGE))
                notification = Notification("No Plate Found", NO_PLATE_MESSAGE, DESTRUCTIVE)

            self.notifier.notify(notification)
            if isinstance(self._state, Failed):
                # la placa que estaba en stage no se pierde por un reintento fallido
                self._transition(Staged(previous) if previous is not None else Idle())

    # ---------------------------------------------------------
    # ACCEPT / REJECT
    # ---------------------------------------------------------
    def accept(self) -> Optional[ScanRecord]:
        """Promueve el resultado en stage a ScanRecord y lo guarda en el historial."""
        with self._lock:
            state = self._state
            if not isinstance(state, Staged):
                return None

            record = ScanRecord(
                id=uuid.uuid4().hex,
                plate_number=state.result.plate_number,
                timestamp=self.clock(),
            )
            self.history.append(record)
            self._transition(Idle())

        staged_decisions_total.labels(session_id=self.session_id, decision="accepted").inc()
        history_size.labels(session_id=self.session_id).set(len(self.history))
        self.notifier.notify(Notification("Saved", f"Plate {record.plate_number} added to history."))
        return record

    def reject(self) -> bool:
        """Descarta el resultado en stage; la cámara sigue viva para otro intento."""
        with self._lock:
            state = self._state
            if not isinstance(state, Staged):
                return False
            self._transition(Idle())

        staged_decisions_total.labels(session_id=self.session_id, decision="rejected").inc()
        logger.debug("[%s] %s descartada", self.session_id, state.result.plate_number)
        return True
