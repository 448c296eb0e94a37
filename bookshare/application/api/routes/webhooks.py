"""
Identity Provider Webhook Route

    POST /api/webhook/clerk

RESPONSES:
----------
- delivery headers missing           -> 400 text "Missing svix headers"
- user event without ``data.id``     -> 400 {"success": false, "error": ...}
- store failure during the upsert    -> 500 {"success": false, "error": ..., "details": ...}
- anything else going wrong          -> 500 {"success": false, "error": "Failed to process webhook", ...}
- otherwise                          -> 200 {"success": true}

This route formats its own error bodies; the provider's delivery dashboard
shows them verbatim.
"""

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse

from bookshare.application.api.dependencies import WebhookServiceDep
from bookshare.application.api.models import WebhookEvent, WebhookResponse
from bookshare.application.services.webhook_service import has_signature_headers
from bookshare.core.exceptions import InvalidRequestError, PersistenceError
from bookshare.core.logging.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/webhook", tags=["Webhooks"])

FAILED_TO_PROCESS = "Failed to process webhook"


def _failure(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    body = WebhookResponse(success=False, error=error, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@router.post("/clerk", response_model=WebhookResponse, response_model_exclude_none=True)
async def clerk_webhook(request: Request, webhooks: WebhookServiceDep):
    if not has_signature_headers(request.headers):
        logger.warning("Webhook rejected: missing delivery headers", stage="W.0")
        return PlainTextResponse("Missing svix headers", status_code=status.HTTP_400_BAD_REQUEST)

    try:
        event = WebhookEvent.model_validate(await request.json())
        await webhooks.handle(event)
    except InvalidRequestError as e:
        return _failure(status.HTTP_400_BAD_REQUEST, e.message)
    except PersistenceError as e:
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, e.message, e.public_details)
    except ValueError as e:
        # Undecodable JSON and pydantic ValidationError both land here
        logger.error(FAILED_TO_PROCESS, stage="W.E", error=str(e), error_type=type(e).__name__)
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, FAILED_TO_PROCESS, str(e))

    return WebhookResponse(success=True)
