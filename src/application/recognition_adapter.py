import re
import logging
from typing import Optional, Union

from src.core.exceptions import InvalidInputError, RecognitionError
from src.domain.Interfaces.inference_service import IRecognitionService
from src.domain.Models.frame import EncodedImage
from src.domain.Models.recognition import RecognitionResult

logger = logging.getLogger(__name__)

_DATA_URI = re.compile(r"^data:[\w.+-]+/[\w.+-]+;base64,[A-Za-z0-9+/=\s]+$")


class RecognitionAdapter:
    """
    Envoltorio de una sola llamada sobre el servicio de reconocimiento.

    - Requiere imagen o pista (InvalidInputError si faltan ambas).
    - No inventa placas: devuelve lo que diga el servicio, solo sin
      espacios en los extremos. "" = no se reconoció nada.
    - Conserva mayúsculas/minúsculas; la normalización canónica se hace
      al poner el resultado en stage.
    """

    def __init__(self, service: IRecognitionService):
        self.service = service

    @staticmethod
    def _to_data_uri(image: Union[EncodedImage, str, None]) -> Optional[str]:
        if image is None:
            return None
        if isinstance(image, EncodedImage):
            return image.data_uri
        if not _DATA_URI.match(image):
            raise InvalidInputError("photoDataUri must look like data:<mimetype>;base64,<data>")
        return image

    def recognize(self, image: Union[EncodedImage, str, None] = None,
                  hint: Optional[str] = None) -> RecognitionResult:
        hint = hint.strip() if hint else None
        if image is None and not hint:
            raise InvalidInputError()

        photo_data_uri = self._to_data_uri(image)
        response = self.service.recognize(prompt=hint, photo_data_uri=photo_data_uri)

        if not isinstance(response, dict) or "plateNumber" not in response:
            raise RecognitionError("Malformed recognition response: missing plateNumber")

        plate = response["plateNumber"]
        if not isinstance(plate, str):
            raise RecognitionError(f"Malformed recognition response: plateNumber={plate!r}")

        result = RecognitionResult(plate_number=plate.strip())
        logger.debug("Recognition -> %r", result.plate_number)
        return result
