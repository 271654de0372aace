from src.core.config import settings
from src.domain.Interfaces.inference_service import IRecognitionService, ISummarizationService

def create_recognition_service() -> IRecognitionService:
    if settings.inference_backend.lower() == "dummy":
        from src.infrastructure.Inference.dummy_inference_service import DummyRecognitionService
        return DummyRecognitionService(plate_number=settings.dummy_plate)
    else:
        from src.infrastructure.Inference.http_inference_service import HttpRecognitionService
        return HttpRecognitionService(
            url=settings.recognition_url,
            api_key=settings.inference_api_key,
            timeout=settings.inference_timeout,
        )


def create_summarization_service() -> ISummarizationService:
    if settings.inference_backend.lower() == "dummy":
        from src.infrastructure.Inference.dummy_inference_service import DummySummarizationService
        return DummySummarizationService()
    else:
        from src.infrastructure.Inference.http_inference_service import HttpSummarizationService
        return HttpSummarizationService(
            url=settings.summarization_url,
            api_key=settings.inference_api_key,
            timeout=settings.inference_timeout,
        )
