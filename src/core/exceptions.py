# src/core/exceptions.py


class ScannerError(Exception):
    """Error base del escáner. status_code se usa al responder por HTTP."""
    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class DeviceAccessError(ScannerError):
    """Permiso denegado, cámara inexistente u ocupada. Se puede reintentar."""
    def __init__(self, message: str = "Could not access camera"):
        super().__init__(message, 503)


class NotReadyError(ScannerError):
    """Captura pedida antes de que la sesión esté lista (violación de contrato)."""
    def __init__(self, message: str = "Capture session is not ready"):
        super().__init__(message, 409)


class CaptureError(ScannerError):
    """La sesión está lista pero no entregó un frame a tiempo."""
    def __init__(self, message: str = "No frame available from camera"):
        super().__init__(message, 503)


class InvalidInputError(ScannerError):
    """Petición de reconocimiento sin imagen ni pista, o data URI mal formado."""
    def __init__(self, message: str = "An image or a text hint is required"):
        super().__init__(message, 422)


class RecognitionError(ScannerError):
    """Fallo de red / servicio / respuesta mal formada durante la inferencia."""
    def __init__(self, message: str = "Recognition service failed"):
        super().__init__(message, 502)


class SummarizationError(ScannerError):
    """Historial vacío o fallo del servicio de resumen."""
    def __init__(self, message: str = "Summarization service failed", status_code: int = 502):
        super().__init__(message, status_code)
