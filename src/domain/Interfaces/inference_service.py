from abc import ABC, abstractmethod
from typing import Optional

class IRecognitionService(ABC):
    """
    Servicio externo multimodal que reconoce la placa de una imagen y/o pista.
    """
    @abstractmethod
    def recognize(self, prompt: Optional[str] = None, photo_data_uri: Optional[str] = None) -> dict:
        """Devuelve el JSON crudo {"plateNumber": str}. Lanza RecognitionError."""
        pass

    def close(self) -> None:
        """Libera conexiones abiertas (si las hay)."""
        pass


class ISummarizationService(ABC):
    """
    Servicio externo de generación de texto que resume el historial.
    """
    @abstractmethod
    def summarize(self, scan_history: str) -> dict:
        """Devuelve el JSON crudo {"summary": str}. Lanza SummarizationError."""
        pass

    def close(self) -> None:
        pass
