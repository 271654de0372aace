# src/domain/Services/history_log.py
import logging
import threading
from typing import Iterator, List, Tuple

from src.domain.Models.scan_record import ScanRecord

logger = logging.getLogger(__name__)


class HistoryView:
    """
    Vista perezosa y reiniciable del historial. Cada iteración recorre
    una copia tomada en ese momento, en orden de inserción.
    """

    def __init__(self, log: "HistoryLog"):
        self._log = log

    def __iter__(self) -> Iterator[ScanRecord]:
        yield from self._log.snapshot()

    def __len__(self) -> int:
        return len(self._log)


class HistoryLog:
    """
    Registro append-only de ScanRecord confirmados durante la sesión.

    - Orden = orden de inserción. Sin deduplicación ni fusión.
    - Solo vive en memoria; clear() es irreversible.
    """

    def __init__(self):
        self._records: List[ScanRecord] = []
        self._lock = threading.Lock()

    def append(self, record: ScanRecord) -> None:
        with self._lock:
            self._records.append(record)
            size = len(self._records)
        logger.debug("History append %s (size=%d)", record.plate_number, size)

    def clear(self) -> None:
        with self._lock:
            removed = len(self._records)
            self._records = []
        logger.info(f"🗑️ Historial vaciado ({removed} registros)")

    def snapshot(self) -> Tuple[ScanRecord, ...]:
        with self._lock:
            return tuple(self._records)

    def render(self) -> HistoryView:
        return HistoryView(self)

    def to_summarizable_text(self) -> str:
        """'<placa> at <YYYY-MM-DD HH:MM:SS>' por línea, del más antiguo al más nuevo."""
        return "\n".join(r.to_summary_line() for r in self.snapshot())

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
