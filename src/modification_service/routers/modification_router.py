"""HTTP endpoints for modification requests."""

from fastapi import APIRouter, Request
import structlog

from modification_service.models.modification_models import ModificationRequest, ModificationResult
from modification_service.orchestrator.orchestrator import ModificationOrchestrator

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/modifications", tags=["modifications"])


def get_orchestrator(request: Request) -> ModificationOrchestrator:
    return request.app.state.orchestrator


@router.post("", response_model=ModificationResult, response_model_by_alias=True)
async def modify(body: ModificationRequest, request: Request) -> ModificationResult:
    logger.info("modification_requested", session_id=body.session_id, prompt_chars=len(body.prompt))
    return await get_orchestrator(request).process(body)


@router.delete("/sessions/{session_id}", status_code=204)
async def clear_session(session_id: str, request: Request) -> None:
    await get_orchestrator(request).clear_session(session_id)
