import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.core.config import settings
from src.core.exceptions import ScannerError, SummarizationError
from src.domain.Models.workflow_state import state_to_dict
from src.application.scanner_runner import Scanner, create_scanner
from src.application.summarization_adapter import SUMMARY_FALLBACK
from src.api.schemas import (
    HistoryResponse, NotificationOut, RecognizeRequest, RecognizeResponse,
    ScanRequest, ScanResponse, SummarizeRequest, SummarizeResponse, WorkflowStateOut,
)

logger = logging.getLogger(__name__)


def _state_payload(scanner: Scanner) -> dict:
    payload = state_to_dict(scanner.workflow.state)
    payload["ready"] = scanner.workflow.is_ready
    return payload


def create_app(scanner: Optional[Scanner] = None) -> FastAPI:
    scanner = scanner or create_scanner()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # liberar la cámara al apagar el servidor
        scanner.shutdown()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.scanner = scanner

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ScannerError)
    async def scanner_error_handler(request: Request, exc: ScannerError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.get("/health")
    def health_check():
        return {"status": "ok", "env": settings.app_env}

    # =========================
    #  Camera
    # =========================
    @app.post("/camera/start", response_model=WorkflowStateOut)
    def start_camera():
        scanner.start_camera()
        return _state_payload(scanner)

    @app.post("/camera/stop", response_model=WorkflowStateOut)
    def stop_camera():
        scanner.stop_camera()
        return _state_payload(scanner)

    # =========================
    #  Scan workflow
    # =========================
    @app.get("/scan/state", response_model=WorkflowStateOut)
    def scan_state():
        return _state_payload(scanner)

    @app.post("/scan", response_model=ScanResponse)
    def scan(body: Optional[ScanRequest] = None):
        body = body or ScanRequest()
        future = scanner.workflow.trigger(hint=body.hint)
        if future is None:
            raise HTTPException(status_code=409, detail="Camera not ready or a capture is already in progress")

        payload = {}
        if body.wait:
            outcome = future.result()
            payload["outcome"] = {
                "kind": outcome.kind.value,
                "plateNumber": outcome.plate_number,
                "error": outcome.error,
            }
        payload.update(_state_payload(scanner))
        return payload

    @app.post("/scan/accept")
    def accept_scan():
        record = scanner.workflow.accept()
        if record is None:
            raise HTTPException(status_code=409, detail="No staged result to accept")
        return record.to_dict()

    @app.post("/scan/reject", response_model=WorkflowStateOut)
    def reject_scan():
        if not scanner.workflow.reject():
            raise HTTPException(status_code=409, detail="No staged result to reject")
        return _state_payload(scanner)

    @app.get("/notifications", response_model=list[NotificationOut])
    def notifications():
        return [n.to_dict() for n in scanner.notifier.drain()]

    # =========================
    #  History
    # =========================
    @app.get("/history", response_model=HistoryResponse)
    def history():
        records = [r.to_dict() for r in scanner.history.render()]
        return {"count": len(records), "records": records}

    @app.delete("/history")
    def clear_history(confirm: bool = Query(False)):
        if not confirm:
            raise HTTPException(status_code=400, detail="Clearing the history requires confirm=true")
        return {"removed": scanner.clear_history()}

    @app.post("/history/summary", response_model=SummarizeResponse)
    def summarize_history():
        if len(scanner.history) == 0:
            raise HTTPException(status_code=409, detail="No scans to summarize")
        try:
            return {"summary": scanner.summarize_history()}
        except SummarizationError as e:
            return {"summary": SUMMARY_FALLBACK, "error": e.message}

    # =========================
    #  Flows sin estado
    # =========================
    @app.post("/recognize", response_model=RecognizeResponse)
    def recognize(body: RecognizeRequest):
        result = scanner.recognizer.recognize(image=body.photo_data_uri, hint=body.prompt)
        return {"plateNumber": result.plate_number}

    @app.post("/summarize", response_model=SummarizeResponse)
    def summarize(body: SummarizeRequest):
        return {"summary": scanner.summarizer.summarize(body.scan_history)}

    return app


app = create_app()
