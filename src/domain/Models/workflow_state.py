# src/domain/Models/workflow_state.py
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from src.domain.Models.scan_record import StagedResult


class FailureReason(str, Enum):
    EMPTY = "empty"   # no se encontró placa (resultado válido, aviso suave)
    ERROR = "error"   # red / servicio / respuesta mal formada


@dataclass(frozen=True)
class Idle:
    name = "idle"


@dataclass(frozen=True)
class Capturing:
    name = "capturing"
    hint: Optional[str] = None
    started_at: float = 0.0
    previous: Optional[StagedResult] = None   # placa en stage que se recupera si la captura falla


@dataclass(frozen=True)
class Staged:
    name = "staged"
    result: StagedResult


@dataclass(frozen=True)
class Failed:
    name = "failed"
    reason: FailureReason
    message: str


@dataclass(frozen=True)
class Closed:
    name = "closed"


# Un único valor de estado; "Staged" siempre lleva su StagedResult.
WorkflowState = Union[Idle, Capturing, Staged, Failed, Closed]


def state_to_dict(state: WorkflowState) -> dict:
    """Vista serializable del estado (para la API y logs)."""
    data = {"state": state.name, "stagedResult": None}
    if isinstance(state, Staged):
        data["stagedResult"] = {
            "plateNumber": state.result.plate_number,
            "capturedAt": state.result.captured_at.isoformat(),
        }
    elif isinstance(state, Failed):
        data["reason"] = state.reason.value
        data["message"] = state.message
    return data
