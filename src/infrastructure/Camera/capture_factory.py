# src/infrastructure/Camera/capture_factory.py
from src.core.config import settings
from src.domain.Interfaces.capture_session import ICaptureSession

def create_capture_session() -> ICaptureSession:
    """
    Factory responsable de crear la sesión correcta (OpenCV o FakeCaptureSession).
    """

    # ==========================================================
    # 🧪 1) Fake camera para demos y pruebas
    # ==========================================================
    camera_url = settings.camera_url or ""
    if settings.use_fake_cam or camera_url.startswith("fake://"):
        from src.infrastructure.Camera.fake_capture_session import FakeCaptureSession

        media_path = camera_url.replace("fake://", "") or None
        return FakeCaptureSession(media_path=media_path, jpeg_quality=settings.jpeg_quality)

    # ==========================================================
    # 📷 2) OpenCV (cámara local o RTSP/HTTP/archivo)
    # ==========================================================
    from src.infrastructure.Camera.opencv_capture_session import OpenCVCaptureSession
    return OpenCVCaptureSession(
        url=settings.camera_url,
        facing_indices={
            "environment": settings.camera_index_environment,
            "user": settings.camera_index_user,
        },
        jpeg_quality=settings.jpeg_quality,
        frame_timeout=settings.camera_frame_timeout,
    )
