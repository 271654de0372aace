import cv2
import time
from typing import Optional, Tuple
import numpy as np

from src.core.exceptions import DeviceAccessError, NotReadyError, CaptureError
from src.domain.Models.frame import Frame, EncodedImage
from src.domain.Interfaces.capture_session import ICaptureSession
from src.infrastructure.Camera.opencv_capture_session import encode_jpeg


class FakeCaptureSession(ICaptureSession):
    """
    Simula una cámara usando un archivo de video o una imagen fija.
    Si no hay ruta, entrega un frame negro de la resolución pedida.
    """

    def __init__(self, media_path: Optional[str] = None, jpeg_quality: int = 80):
        self.media_path = media_path
        self.jpeg_quality = jpeg_quality
        self.url = f"fake://{media_path or 'blank'}"

        self.cap = None
        self._still: Optional[np.ndarray] = None
        self._ready = False
        self._released = False

    # ==========================================================
    # ACQUIRE
    # ==========================================================
    def acquire(self, preferred_facing: str = "environment",
                ideal_resolution: Tuple[int, int] = (1920, 1080)) -> None:
        if self._released:
            raise DeviceAccessError(f"Sesión {self.url} ya liberada")
        if self._ready:
            return

        if self.media_path is None:
            width, height = ideal_resolution
            self._still = np.zeros((height, width, 3), dtype=np.uint8)
        else:
            image = cv2.imread(self.media_path)
            if image is not None:
                self._still = image
            else:
                self.cap = cv2.VideoCapture(self.media_path)
                if not self.cap.isOpened():
                    self.cap.release()
                    self.cap = None
                    raise DeviceAccessError(f"No se pudo abrir {self.media_path}")

        self._ready = True

    @property
    def is_ready(self) -> bool:
        return self._ready

    # ==========================================================
    # CAPTURE (loop infinito del video)
    # ==========================================================
    def _read(self) -> Optional[np.ndarray]:
        if self._still is not None:
            return self._still

        ok, data = self.cap.read()
        if not ok:
            # Si llega al final del video -> reiniciar
            self.cap.set(cv2.CAP_PROP_POS_FRAMES, 0)
            ok, data = self.cap.read()
        return data if ok else None

    def capture_frame(self) -> EncodedImage:
        if not self._ready:
            raise NotReadyError()

        data = self._read()
        if data is None:
            raise CaptureError(f"No frame available from {self.url}")
        return encode_jpeg(Frame(data=data, timestamp=time.time(), source=self.url), self.jpeg_quality)

    # ==========================================================
    # RELEASE
    # ==========================================================
    def release(self) -> None:
        self._released = True
        self._ready = False
        self._still = None
        if self.cap:
            self.cap.release()
            self.cap = None
