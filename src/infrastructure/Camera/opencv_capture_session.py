import cv2
import time
import logging
import threading
from typing import Optional, Tuple, Union

from src.core.exceptions import DeviceAccessError, NotReadyError, CaptureError
from src.domain.Models.frame import Frame, EncodedImage
from src.domain.Interfaces.capture_session import ICaptureSession

logger = logging.getLogger(__name__)

# Dispositivos con una sesión viva. Una cámara nunca se comparte entre sesiones.
_claimed_devices: set = set()
_claims_lock = threading.Lock()


def _claim(device) -> None:
    with _claims_lock:
        if device in _claimed_devices:
            raise DeviceAccessError(f"Camera {device} is already in use by another session")
        _claimed_devices.add(device)


def _unclaim(device) -> None:
    with _claims_lock:
        _claimed_devices.discard(device)


def encode_jpeg(frame: Frame, quality: int) -> EncodedImage:
    """Codifica un frame BGR como JPEG con calidad fija."""
    ok, buffer = cv2.imencode(".jpg", frame.data, [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)])
    if not ok:
        raise CaptureError("Could not encode frame as JPEG")
    height, width = frame.data.shape[:2]
    return EncodedImage(
        data=buffer.tobytes(),
        mime_type="image/jpeg",
        width=int(width),
        height=int(height),
        captured_at=frame.timestamp,
    )


class OpenCVCaptureSession(ICaptureSession):
    """
    Sesión de captura usando OpenCV con lectura en hilo separado.
    - Un hilo interno (_update_frames) lee continuamente y mantiene SOLO el último frame.
    - capture_frame() codifica ese último frame sin esperar al buffer del driver.
    - facing ('environment' / 'user') se traduce a un índice de dispositivo;
      una URL explícita tiene prioridad.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        facing_indices: Optional[dict] = None,
        jpeg_quality: int = 80,
        frame_timeout: float = 1.0,
    ):
        """
        :param url: URL del stream (RTSP/HTTP/archivo). None = cámara local.
        :param facing_indices: {'environment': idx, 'user': idx}
        :param jpeg_quality: calidad JPEG (0-100) de los frames capturados.
        :param frame_timeout: tiempo máximo esperando el primer frame.
        """
        self.url = url
        self.facing_indices = facing_indices or {"environment": 0, "user": 1}
        self.jpeg_quality = jpeg_quality
        self.frame_timeout = frame_timeout

        self.cap = None
        self.device: Optional[Union[int, str]] = None
        self.actual_resolution: Optional[Tuple[int, int]] = None

        # control del hilo interno
        self._state_lock = threading.Lock()
        self._frame_lock = threading.Lock()
        self._latest_frame: Optional[Frame] = None
        self._running = False
        self._ready = False
        self._released = False
        self._thread: Optional[threading.Thread] = None

    # ==========================================================
    # ACQUIRE
    # ==========================================================
    def _resolve_device(self, preferred_facing: str) -> Union[int, str]:
        if self.url:
            return self.url
        if preferred_facing not in self.facing_indices:
            raise DeviceAccessError(f"No camera configured for facing '{preferred_facing}'")
        return self.facing_indices[preferred_facing]

    def acquire(self, preferred_facing: str = "environment",
                ideal_resolution: Tuple[int, int] = (1920, 1080)) -> None:
        with self._state_lock:
            if self._released:
                # una sesión liberada no se reabre; se crea otra
                raise DeviceAccessError("Capture session already released")
            if self._ready:
                return

        device = self._resolve_device(preferred_facing)
        _claim(device)

        cap = None
        try:
            cap = cv2.VideoCapture(device)
            if not cap or not cap.isOpened():
                raise DeviceAccessError(f"Could not open camera {device}. Check permissions.")

            # Resolución ideal: es una pista, el driver puede entregar otra
            width, height = ideal_resolution
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
            actual = (
                int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
                int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
            )

            with self._state_lock:
                # release() llegó mientras abríamos el dispositivo
                if self._released:
                    raise DeviceAccessError("Capture session released during acquisition")
                self.cap = cap
                self.device = device
                self.actual_resolution = actual
                self._running = True
                self._ready = True
        except Exception:
            if cap is not None:
                cap.release()
            _unclaim(device)
            raise

        logger.info(
            f"🎥 Cámara {device} abierta ({preferred_facing}), "
            f"pedido={ideal_resolution[0]}x{ideal_resolution[1]} real={actual[0]}x{actual[1]}"
        )

        # Lanzar hilo de lectura continua
        self._thread = threading.Thread(target=self._update_frames, name=f"capture-{device}", daemon=True)
        self._thread.start()

    # ==========================================================
    # THREAD QUE LEE FRAMES CONTINUAMENTE
    # ==========================================================
    def _update_frames(self):
        """ Hilo que lee continuamente frames y mantiene solo el más reciente. """
        while self._running:
            cap = self.cap
            if cap is None:
                break

            ret, data = cap.read()
            if not ret:
                logger.warning(f"[{self.device}] Error al leer frame")
                time.sleep(0.05)
                continue

            with self._frame_lock:
                self._latest_frame = Frame(
                    data=data,
                    timestamp=time.time(),
                    source=str(self.device)
                )

    # ==========================================================
    # CAPTURE
    # ==========================================================
    @property
    def is_ready(self) -> bool:
        return self._ready

    def _wait_latest_frame(self) -> Optional[Frame]:
        deadline = time.time() + self.frame_timeout
        while True:
            with self._frame_lock:
                frame = self._latest_frame
            if frame is not None or time.time() >= deadline or not self._running:
                return frame
            time.sleep(0.01)

    def capture_frame(self) -> EncodedImage:
        if not self._ready:
            raise NotReadyError()

        frame = self._wait_latest_frame()
        if frame is None:
            raise CaptureError(f"No frame received from camera {self.device}")
        return encode_jpeg(frame, self.jpeg_quality)

    # ==========================================================
    # RELEASE
    # ==========================================================
    def release(self) -> None:
        with self._state_lock:
            self._released = True
            was_ready = self._ready
            self._ready = False
            self._running = False
            cap, self.cap = self.cap, None
            device, self.device = self.device, None

        if self._thread and self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=2.0)
        self._thread = None

        if cap is not None:
            cap.release()
        if device is not None:
            _unclaim(device)

        with self._frame_lock:
            self._latest_frame = None

        if was_ready:
            logger.info(f"🔌 Cámara liberada ({device}).")
