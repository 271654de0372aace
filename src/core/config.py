import os
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from dotenv import load_dotenv


# ==========================================================
# 1) Cargar .env raíz
# ==========================================================
load_dotenv(".env")
DEPLOY_ENV = os.getenv("DEPLOY_ENV", "prod").lower()

# ==========================================================
# 2) Cargar .env del entorno
# ==========================================================
ENV_PATH = f"DevOps/{DEPLOY_ENV}/.env"
load_dotenv(ENV_PATH, override=True)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=ENV_PATH,
        extra="allow"
    )

    # =========================
    #  App
    # =========================
    deploy_env: str = Field("prod")
    app_name: str = Field("plate-scanner")
    app_env: str = Field("prod")
    app_host: str = Field("0.0.0.0")
    app_port: int = Field(8000)
    log_level: str = Field("INFO")

    # =========================
    #  Camera
    # =========================
    camera_url: Optional[str] = Field(None)   # RTSP/HTTP/archivo, o fake://<ruta>
    use_fake_cam: bool = Field(False)
    camera_facing: str = Field("environment")
    camera_ideal_width: int = Field(1920)
    camera_ideal_height: int = Field(1080)
    camera_index_environment: int = Field(0)
    camera_index_user: int = Field(1)
    camera_frame_timeout: float = Field(1.0)
    jpeg_quality: int = Field(80)

    # =========================
    #  Inference
    # =========================
    inference_backend: str = Field("http")    # http | dummy
    recognition_url: str = Field("http://localhost:3400/initiateScanWithPromptFlow")
    summarization_url: str = Field("http://localhost:3400/summarizeScanHistoryFlow")
    inference_api_key: Optional[str] = Field(None)
    inference_timeout: float = Field(30.0)
    scan_default_hint: str = Field("Extract the license plate number from anywhere in this image.")
    dummy_plate: str = Field("FAKE123")

    # =========================
    #  Monitoring
    # =========================
    metrics_enabled: bool = Field(True)
    prometheus_port: int = Field(9100)


settings = Settings()
