from collections import Counter
from typing import Optional

from src.domain.Interfaces.inference_service import IRecognitionService, ISummarizationService


class DummyRecognitionService(IRecognitionService):
    """
    Implementación dummy que simplemente devuelve la misma placa fija.
    """

    def __init__(self, plate_number: str = "FAKE123"):
        self.plate_number = plate_number

    def recognize(self, prompt: Optional[str] = None, photo_data_uri: Optional[str] = None) -> dict:
        return {"plateNumber": self.plate_number}


class DummySummarizationService(ISummarizationService):
    """
    Resumen local sin modelo: cuenta lecturas por placa.
    """

    def summarize(self, scan_history: str) -> dict:
        plates = [line.split(" at ", 1)[0] for line in scan_history.splitlines() if line.strip()]
        counts = Counter(plates)
        top = ", ".join(f"{plate} ({n})" for plate, n in counts.most_common(3))
        return {"summary": f"{len(plates)} scans of {len(counts)} distinct plates. Most frequent: {top}."}
