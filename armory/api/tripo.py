from fastapi import APIRouter, Depends
from fastapi.responses import Response
from pydantic import BaseModel
from armory.core.context import AppContext, get_context
from armory.services import tripo as tripo_service
from armory.services.tripo import UpstreamResponse

router = APIRouter(prefix="/v1/tripo", tags=["tripo"])


class TripoTaskRequest(BaseModel):
    prompt: str
    model_version: str | None = None
    quality: str | None = None


def _relay(upstream: UpstreamResponse) -> Response:
    # Status, body and content-type go back exactly as upstream sent them
    headers = {"Content-Type": upstream.content_type} if upstream.content_type else None
    return Response(content=upstream.body, status_code=upstream.status, headers=headers)


# ─── POST /v1/tripo/task ─────────────────────────────────────────────────────

@router.post("/task")
async def create_task(
    payload: TripoTaskRequest,
    context: AppContext = Depends(get_context),
):
    upstream = await tripo_service.create_task(
        context,
        prompt=payload.prompt,
        model_version=payload.model_version,
        quality=payload.quality,
    )
    return _relay(upstream)


# ─── GET /v1/tripo/task/{task_id} ────────────────────────────────────────────

@router.get("/task/{task_id}")
async def get_task(task_id: str, context: AppContext = Depends(get_context)):
    upstream = await tripo_service.get_task(context, task_id)
    return _relay(upstream)
