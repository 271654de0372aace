from dataclasses import dataclass
from datetime import datetime

# Formato que consume el servicio de resumen
SUMMARY_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class StagedResult:
    """
    Placa candidata a la espera de que el usuario la acepte o la descarte.
    """
    plate_number: str
    captured_at: datetime


@dataclass(frozen=True)
class ScanRecord:
    """
    Registro confirmado del historial. Inmutable.
    """
    id: str
    plate_number: str
    timestamp: datetime

    def __post_init__(self):
        if not self.plate_number:
            raise ValueError("ScanRecord requires a non-empty plate_number")

    def to_summary_line(self) -> str:
        return f"{self.plate_number} at {self.timestamp.strftime(SUMMARY_TIMESTAMP_FORMAT)}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "plateNumber": self.plate_number,
            "timestamp": self.timestamp.isoformat(),
        }
