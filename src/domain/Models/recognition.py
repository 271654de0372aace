from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class RecognitionResult:
    """
    Respuesta del adaptador de reconocimiento. plate_number == "" significa
    "no se reconoció ninguna placa", nunca un error.
    """
    plate_number: str

    @property
    def is_empty(self) -> bool:
        return not self.plate_number


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    EMPTY = "empty"
    ERROR = "error"


@dataclass(frozen=True)
class RecognitionOutcome:
    """
    Resultado explícito de un ciclo captura -> inferencia.
    Lo consume la máquina de estados del workflow.
    """
    kind: OutcomeKind
    plate_number: str = ""
    error: Optional[str] = None

    @classmethod
    def from_result(cls, result: RecognitionResult) -> "RecognitionOutcome":
        if result.is_empty:
            return cls(OutcomeKind.EMPTY)
        return cls(OutcomeKind.SUCCESS, plate_number=result.plate_number)

    @classmethod
    def failure(cls, error: Exception) -> "RecognitionOutcome":
        return cls(OutcomeKind.ERROR, error=str(error) or type(error).__name__)
