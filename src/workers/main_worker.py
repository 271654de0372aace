import warnings
warnings.filterwarnings("ignore")

import logging

import uvicorn

from src.core.config import settings
from src.monitoring.metrics import start_metrics_server

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


def main():
    if settings.metrics_enabled:
        try:
            start_metrics_server(port=settings.prometheus_port)
        except OSError:
            logger.exception("⚠️ No se pudo iniciar el servidor de métricas")

    from src.api.main import app

    logger.info(f"🚀 {settings.app_name} escuchando en {settings.app_host}:{settings.app_port}")
    uvicorn.run(app, host=settings.app_host, port=settings.app_port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
