from functools import lru_cache
from pathlib import Path

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from auto_appraisal.config import Settings
from auto_appraisal.deps import get_settings

router = APIRouter(tags=["assets"])

SERVICE_WORKER = Path(__file__).parent.parent / "static" / "sw.js"


@lru_cache(maxsize=1)
def _service_worker_template() -> str:
    return SERVICE_WORKER.read_text(encoding="utf-8")


def render_service_worker(cache_version: str) -> str:
    return _service_worker_template().replace("__CACHE_VERSION__", cache_version)


@router.get("/sw.js", include_in_schema=False)
async def service_worker(settings: Settings = Depends(get_settings)) -> Response:
    return Response(
        content=render_service_worker(settings.CACHE_VERSION),
        media_type="application/javascript",
        headers={"Cache-Control": "no-cache", "Service-Worker-Allowed": "/"},
    )
