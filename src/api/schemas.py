from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class RecognizeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompt: Optional[str] = None                                     # pista opcional
    photo_data_uri: Optional[str] = Field(None, alias="photoDataUri")  # data:<mime>;base64,<data>


class RecognizeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    plate_number: str = Field(alias="plateNumber")


class SummarizeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    scan_history: str = Field(alias="scanHistory")


class SummarizeResponse(BaseModel):
    summary: str
    error: Optional[str] = None


class ScanRequest(BaseModel):
    hint: Optional[str] = None
    wait: bool = True       # esperar el resultado del reconocimiento


class StagedResultOut(BaseModel):
    plateNumber: str
    capturedAt: str


class WorkflowStateOut(BaseModel):
    state: str
    ready: bool
    stagedResult: Optional[StagedResultOut] = None
    reason: Optional[str] = None
    message: Optional[str] = None


class ScanOutcomeOut(BaseModel):
    kind: str
    plateNumber: str = ""
    error: Optional[str] = None


class ScanResponse(WorkflowStateOut):
    outcome: Optional[ScanOutcomeOut] = None


class ScanRecordOut(BaseModel):
    id: str
    plateNumber: str
    timestamp: str


class HistoryResponse(BaseModel):
    count: int
    records: List[ScanRecordOut]


class NotificationOut(BaseModel):
    title: str
    description: str
    variant: str
