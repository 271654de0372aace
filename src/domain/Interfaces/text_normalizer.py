from typing import Protocol

class ITextNormalizer(Protocol):
    """
    Normalización canónica de una placa candidata antes de ponerla en stage.
    """
    def normalize(self, text: str) -> str: ...
