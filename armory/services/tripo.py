import asyncio
import logging
from dataclasses import dataclass
from typing import Any
import aiohttp
from armory.core.context import AppContext
from armory.core.errors import UpstreamError
from armory.services.policy import check_task_prompt

logger = logging.getLogger(__name__)

DEFAULT_MODEL_VERSION = "default"
DEFAULT_QUALITY = "medium"


@dataclass(frozen=True)
class UpstreamResponse:
    """Upstream reply kept byte-for-byte so it can be relayed unchanged."""
    status: int
    body: bytes
    content_type: str | None = None


def build_task_payload(
    prompt: str,
    model_version: str | None = None,
    quality: str | None = None,
) -> dict[str, Any]:
    return {
        "type": "text_to_model",
        "prompt": prompt,
        "model_version": DEFAULT_MODEL_VERSION if model_version is None else model_version,
        "quality": DEFAULT_QUALITY if quality is None else quality,
    }


async def _send(context: AppContext, method: str, path: str, **kwargs) -> UpstreamResponse:
    url = f"{context.settings.tripo_base_url}{path}"
    headers = {"Authorization": f"Bearer {context.settings.tripo_api_key}"}
    try:
        async with context.http.request(method, url, headers=headers, **kwargs) as resp:
            body = await resp.read()
            return UpstreamResponse(
                status=resp.status,
                body=body,
                content_type=resp.headers.get("Content-Type"),
            )
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        logger.warning(f"Tripo {method} {path} failed: {e!r}")
        raise UpstreamError(f"Upstream error: {e}") from e


async def create_task(
    context: AppContext,
    prompt: str,
    model_version: str | None = None,
    quality: str | None = None,
) -> UpstreamResponse:
    """
    Submit a text-to-model task:
    1. content policy on the raw prompt (nothing is sent on failure)
    2. POST {base}/task with the bearer key
    3. hand back the upstream reply untouched
    """
    check_task_prompt(prompt)
    payload = build_task_payload(prompt, model_version, quality)
    upstream = await _send(context, "POST", "/task", json=payload)
    logger.info(f"Tripo task submitted, upstream status={upstream.status}")
    return upstream


async def get_task(context: AppContext, task_id: str) -> UpstreamResponse:
    return await _send(context, "GET", f"/task/{task_id}")
