import logging

from src.core.exceptions import SummarizationError
from src.domain.Interfaces.inference_service import ISummarizationService
from src.domain.Services.history_log import HistoryLog
from src.monitoring.metrics import summaries_total

logger = logging.getLogger(__name__)

SUMMARY_FALLBACK = "Failed to generate summary. Please try again later."


class SummarizationAdapter:
    """
    Envía el historial serializado al servicio de resumen. Sin reintentos:
    cualquier fallo sale como SummarizationError para mostrarlo tal cual.
    """

    def __init__(self, service: ISummarizationService):
        self.service = service

    def summarize(self, serialized_history: str) -> str:
        if not serialized_history or not serialized_history.strip():
            summaries_total.labels(status="rejected").inc()
            raise SummarizationError("Scan history is empty; nothing to summarize", status_code=409)

        try:
            response = self.service.summarize(serialized_history)
        except SummarizationError:
            summaries_total.labels(status="error").inc()
            raise
        except Exception as e:
            summaries_total.labels(status="error").inc()
            logger.exception("❌ Error en el servicio de resumen")
            raise SummarizationError(str(e) or type(e).__name__) from e

        summary = response.get("summary") if isinstance(response, dict) else None
        if not isinstance(summary, str):
            summaries_total.labels(status="error").inc()
            raise SummarizationError("Malformed summarization response: missing summary")

        summaries_total.labels(status="ok").inc()
        return summary

    def summarize_log(self, history: HistoryLog) -> str:
        """Rechaza un historial sin registros antes de serializarlo."""
        if len(history) == 0:
            summaries_total.labels(status="rejected").inc()
            raise SummarizationError("Scan history is empty; nothing to summarize", status_code=409)
        return self.summarize(history.to_summarizable_text())
