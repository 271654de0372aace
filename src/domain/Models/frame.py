import base64
from dataclasses import dataclass
import numpy as np

@dataclass
class Frame:
    """
    Representa un frame crudo leído desde la cámara.
    """
    data: np.ndarray   # imagen en formato numpy array (BGR)
    timestamp: float   # momento en que se capturó
    source: str        # identificador de la cámara o URL


@dataclass(frozen=True)
class EncodedImage:
    """
    Frame fijo codificado (JPEG) listo para enviar al servicio de inferencia.
    """
    data: bytes
    mime_type: str
    width: int
    height: int
    captured_at: float

    @property
    def data_uri(self) -> str:
        """data:<mimetype>;base64,<data>"""
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"
