import logging
from dataclasses import dataclass
from typing import Callable, Optional

from src.core.config import settings
from src.domain.Interfaces.capture_session import ICaptureSession
from src.domain.Models.workflow_state import Closed
from src.domain.Services.history_log import HistoryLog
from src.application.recognition_adapter import RecognitionAdapter
from src.application.summarization_adapter import SummarizationAdapter
from src.application.scan_workflow import ScanWorkflow
from src.infrastructure.Camera.capture_factory import create_capture_session
from src.infrastructure.Inference.factory import create_recognition_service, create_summarization_service
from src.infrastructure.Normalizer.plate_normalizer import PlateNormalizer
from src.infrastructure.Notifications.queue_notifier import QueueNotifier
from src.monitoring.metrics import history_size

logger = logging.getLogger(__name__)


@dataclass
class Scanner:
    """
    Todo lo que vive durante una sesión de escaneo: el workflow (con su
    cámara), el historial, los avisos pendientes y los dos adaptadores.

    El historial sobrevive a stop/start de la cámara; el workflow no:
    cerrarlo es terminal, así que start_camera() arma uno nuevo.
    """
    session_id: str
    history: HistoryLog
    notifier: QueueNotifier
    recognizer: RecognitionAdapter
    summarizer: SummarizationAdapter
    capture_factory: Callable[[], ICaptureSession]
    workflow: Optional[ScanWorkflow] = None

    def _build_workflow(self) -> ScanWorkflow:
        return ScanWorkflow(
            capture=self.capture_factory(),
            recognizer=self.recognizer,
            history=self.history,
            notifier=self.notifier,
            normalizer=PlateNormalizer(),
            session_id=self.session_id,
            preferred_facing=settings.camera_facing,
            ideal_resolution=(settings.camera_ideal_width, settings.camera_ideal_height),
            default_hint=settings.scan_default_hint,
        )

    def __post_init__(self):
        if self.workflow is None:
            self.workflow = self._build_workflow()

    # ---------------------------------------------------------
    # CAMERA
    # ---------------------------------------------------------
    def start_camera(self) -> bool:
        if isinstance(self.workflow.state, Closed):
            self.workflow = self._build_workflow()
        return self.workflow.start()

    def stop_camera(self) -> None:
        self.workflow.close()

    # ---------------------------------------------------------
    # HISTORY
    # ---------------------------------------------------------
    def clear_history(self) -> int:
        removed = len(self.history)
        self.history.clear()
        history_size.labels(session_id=self.session_id).set(0)
        return removed

    def summarize_history(self) -> str:
        return self.summarizer.summarize_log(self.history)

    def shutdown(self) -> None:
        try:
            self.workflow.close()
        except Exception:
            logger.exception(f"Error cerrando sesión {self.session_id}")

        for service in (self.recognizer.service, self.summarizer.service):
            try:
                service.close()
            except Exception:
                logger.exception(f"Error cerrando cliente de inferencia {type(service).__name__}")


def create_scanner(
    session_id: str = "default",
    capture_factory: Optional[Callable[[], ICaptureSession]] = None,
    recognition_service=None,
    summarization_service=None,
) -> Scanner:
    """
    Arma un Scanner a partir de settings. Cada colaborador se puede inyectar
    (tests, demos); por defecto salen de las factories.
    """
    logger.info(f"🎥 Preparando sesión de escaneo {session_id}")

    return Scanner(
        session_id=session_id,
        history=HistoryLog(),
        notifier=QueueNotifier(),
        recognizer=RecognitionAdapter(recognition_service or create_recognition_service()),
        summarizer=SummarizationAdapter(summarization_service or create_summarization_service()),
        capture_factory=capture_factory or create_capture_session,
    )
