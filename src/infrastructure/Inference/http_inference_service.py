import logging
from typing import Optional, Type

import requests

from src.core.exceptions import ScannerError, RecognitionError, SummarizationError
from src.domain.Interfaces.inference_service import IRecognitionService, ISummarizationService

logger = logging.getLogger(__name__)


class _JsonFlowClient:
    """
    Cliente HTTP mínimo para un flow de inferencia expuesto como
    POST JSON -> JSON. Sin reintentos: un solo intento por llamada.
    El timeout es del transporte (requests), no del workflow.
    """
    error_cls: Type[ScannerError] = ScannerError

    def __init__(self, url: str, api_key: Optional[str] = None, timeout: float = 30.0,
                 session: Optional[requests.Session] = None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {"Content-Type": "application/json"}
        if api_key:
            self.headers["Authorization"] = f"Bearer {api_key}"

    def _post(self, payload: dict) -> dict:
        try:
            resp = self.session.post(self.url, json=payload, headers=self.headers, timeout=self.timeout)
            resp.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error("Inference call to %s failed: %s", self.url, e)
            raise self.error_cls(f"Error calling inference service: {e}") from e

        try:
            body = resp.json()
        except ValueError as e:
            raise self.error_cls(f"Error parsing inference response as JSON: {e}") from e

        # Algunos servidores de flows envuelven la salida en {"result": {...}}
        if isinstance(body, dict) and isinstance(body.get("result"), dict):
            body = body["result"]
        if not isinstance(body, dict):
            raise self.error_cls("Malformed inference response: expected a JSON object")
        return body

    def close(self) -> None:
        self.session.close()


class HttpRecognitionService(_JsonFlowClient, IRecognitionService):
    error_cls = RecognitionError

    def recognize(self, prompt: Optional[str] = None, photo_data_uri: Optional[str] = None) -> dict:
        payload = {}
        if prompt:
            payload["prompt"] = prompt
        if photo_data_uri:
            payload["photoDataUri"] = photo_data_uri
        return self._post(payload)


class HttpSummarizationService(_JsonFlowClient, ISummarizationService):
    error_cls = SummarizationError

    def summarize(self, scan_history: str) -> dict:
        return self._post({"scanHistory": scan_history})
