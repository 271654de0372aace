from abc import ABC, abstractmethod
from typing import Tuple
from src.domain.Models.frame import EncodedImage

class ICaptureSession(ABC):
    """
    Abstracción de una sesión de captura sobre una cámara en vivo.
    Dueña exclusiva del dispositivo mientras está adquirida.
    """
    @abstractmethod
    def acquire(self, preferred_facing: str, ideal_resolution: Tuple[int, int]) -> None:
        """Abre la cámara. Lanza DeviceAccessError si no es posible."""
        pass

    @property
    @abstractmethod
    def is_ready(self) -> bool:
        pass

    @abstractmethod
    def capture_frame(self) -> EncodedImage:
        """Codifica el frame actual. Lanza NotReadyError si no hay acquire previo."""
        pass

    @abstractmethod
    def release(self) -> None:
        """
        Libera el dispositivo. Idempotente y definitivo: un acquire
        posterior (o uno que estaba en curso) lanza DeviceAccessError.
        """
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.release()
