import logging
from prometheus_client import Gauge, Counter, start_http_server

logger = logging.getLogger(__name__)

# Capturas lanzadas (aceptadas por el guard de re-entrada)
scans_triggered_total = Counter(
    "scans_triggered_total",
    "Total de capturas enviadas a reconocimiento",
    ["session_id"]
)

# Resultado del reconocimiento: success / empty / error
recognition_outcomes_total = Counter(
    "recognition_outcomes_total",
    "Resultados del servicio de reconocimiento",
    ["session_id", "outcome"]
)

# Latencia captura + inferencia
recognition_latency = Gauge(
    "recognition_latency_seconds",
    "Tiempo de la última captura + reconocimiento",
    ["session_id"]
)

# Decisiones del usuario sobre el resultado en stage
staged_decisions_total = Counter(
    "staged_decisions_total",
    "Placas aceptadas o descartadas por el usuario",
    ["session_id", "decision"]
)

# Tamaño del historial
history_size = Gauge(
    "history_size",
    "Registros confirmados en el historial",
    ["session_id"]
)

# Resúmenes pedidos
summaries_total = Counter(
    "summaries_total",
    "Resúmenes del historial por estado",
    ["status"]
)

def start_metrics_server(port: int = 9100):
    """Arranca servidor de métricas Prometheus."""
    start_http_server(port)
    logger.info(f"📊 Prometheus metrics disponible en :{port}")
