"""JSON endpoints: archive listing, single painting, raw objects, cron trigger."""

import hmac

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse, Response

from painter.exceptions import ValidationError
from painter.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/paintings")
async def list_paintings(
    request: Request,
    limit: int | None = Query(None),
    cursor: str | None = Query(None),
    date_from: str | None = Query(None, alias="from"),
    date_to: str | None = Query(None, alias="to"),
) -> JSONResponse:
    """Newest paintings first; pass the returned cursor to get the next page."""
    query_engine = request.app.state.query_engine
    result = await query_engine.list_images(
        limit=limit, cursor=cursor, date_from=date_from, date_to=date_to
    )
    return JSONResponse(content=result.to_dict())


@router.get("/paintings/{painting_id}")
async def get_painting(request: Request, painting_id: str) -> JSONResponse:
    query_engine = request.app.state.query_engine
    painting = await query_engine.get_painting(painting_id)
    if painting is None:
        return JSONResponse(
            status_code=404,
            content={"error": "NotFound", "message": f"painting {painting_id} not found"},
        )
    return JSONResponse(content=painting.to_dict())


@router.get("/r2/{key:path}")
async def get_object(request: Request, key: str) -> Response:
    """Raw image or metadata bytes by object key."""
    if not key or ".." in key.split("/"):
        raise ValidationError("Invalid object key", details={"key": key})
    store = request.app.state.object_store
    stored = await store.get(key)
    if stored is None:
        return JSONResponse(
            status_code=404,
            content={"error": "NotFound", "message": f"object {key} not found"},
        )
    return Response(
        content=stored.data,
        media_type=stored.content_type,
        headers={"Cache-Control": "public, max-age=31536000, immutable"},
    )


def _authorized(request: Request, secret: str) -> bool:
    if not secret:
        return True
    header = request.headers.get("authorization", "")
    return hmac.compare_digest(header, f"Bearer {secret}")


@router.post("/cron")
async def run_cron(request: Request) -> JSONResponse:
    """Run one pipeline execution; the external scheduler calls this hourly."""
    secret = request.app.state.settings.api.cron_secret.get_secret_value()
    if not _authorized(request, secret):
        logger.warning("cron_unauthorized", client=request.client.host if request.client else None)
        return JSONResponse(
            status_code=401, content={"error": "Unauthorized", "message": "invalid cron secret"}
        )
    orchestrator = request.app.state.orchestrator
    result = await orchestrator.execute()
    return JSONResponse(content=result.to_dict())
