# src/infrastructure/Normalizer/plate_normalizer.py
import re
from src.domain.Interfaces.text_normalizer import ITextNormalizer


class PlateNormalizer(ITextNormalizer):
    """
    Normaliza texto de placas candidatas:
    - Quitar espacios de los extremos
    - Colapsar espacios internos repetidos
    - Mayúsculas
    Separadores como '-' se conservan: son parte de la placa tal como se lee.
    """
    _SPACES = re.compile(r"\s+")

    def normalize(self, text: str) -> str:
        if not text:
            return ""

        t = self._SPACES.sub(" ", text.strip())
        return t.upper()
