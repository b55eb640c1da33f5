import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from auth.dependencies import (
    IngestionServiceFactory,
    get_athlete_repository,
    get_current_user_id,
    get_ingestion_service_factory,
)
from config import settings
from database.athlete_repository import AthleteRepository
from models.athlete import StravaTokens
from models.webhook import ObjectType, StravaTokenSyncRequest, WebhookEvent
from services.task_registry import task_registry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/strava", tags=["strava-webhook"])

EVENT_RECEIVED = "EVENT_RECEIVED"


@router.get("/webhook")
async def verify_webhook(
    hub_mode: str | None = Query(None, alias="hub.mode"),
    hub_verify_token: str | None = Query(None, alias="hub.verify_token"),
    hub_challenge: str | None = Query(None, alias="hub.challenge"),
):
    """
    Verify webhook subscription with Strava.

    Strava calls this endpoint when the subscription is created. The challenge
    is echoed back only if the verify token matches the configured secret.

    Answers 403 for a mode other than "subscribe" or a token mismatch. A
    request without hub.challenge, or any request while no secret is
    configured, is also rejected with 403, since there is nothing to echo or
    nothing to compare against.
    """
    expected_token = settings.strava_webhook_verify_token
    if not expected_token:
        logger.error("STRAVA_WEBHOOK_VERIFY_TOKEN is not configured, rejecting verification")

    if (
        hub_mode == "subscribe"
        and expected_token
        and hub_verify_token == expected_token
        and hub_challenge is not None
    ):
        logger.info("Webhook verification successful")
        return {"hub.challenge": hub_challenge}

    logger.warning(f"Webhook verification failed: mode={hub_mode}")
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Forbidden"
    )


async def _process_activity_event(
    service_factory: IngestionServiceFactory,
    event: WebhookEvent
) -> None:
    ingestion_service = service_factory()
    await ingestion_service.process_event(event.owner_id, event.object_id, event.aspect_type)


@router.post("/webhook", response_class=PlainTextResponse)
async def receive_webhook_event(
    request: Request,
    service_factory: IngestionServiceFactory = Depends(get_ingestion_service_factory)
) -> PlainTextResponse:
    """
    Receive a Strava webhook event.

    Always acknowledges with 200 so Strava does not retry. Activity events are
    processed in the background after the response; athlete events and
    invalid payloads are dropped. The ingestion service, and with it the
    database, is only built inside the background task.
    """
    try:
        event = WebhookEvent.model_validate(await request.json())
    except (ValueError, ValidationError) as e:
        logger.warning(f"Invalid webhook payload: {e}")
        return PlainTextResponse(EVENT_RECEIVED, status_code=status.HTTP_200_OK)

    logger.info(
        f"Received {event.aspect_type.value} event for {event.object_type.value} {event.object_id}"
    )

    if event.object_type == ObjectType.ACTIVITY:
        task_registry.schedule(
            _process_activity_event(service_factory, event),
            name=f"strava-{event.aspect_type.value}-{event.object_id}"
        )

    return PlainTextResponse(EVENT_RECEIVED, status_code=status.HTTP_200_OK)


@router.post("/tokens")
async def sync_strava_tokens(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    athlete_repo: AthleteRepository = Depends(get_athlete_repository)
):
    """
    Store Strava tokens obtained by the app and map the athlete to the user.

    The mapping is what lets webhook events for this athlete be resolved.
    """
    try:
        payload = StravaTokenSyncRequest.model_validate(await request.json())
    except (ValueError, ValidationError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid token payload: {str(e)}"
        )

    tokens = StravaTokens(
        user_id=user_id,
        athlete_id=payload.athlete_id,
        access_token=payload.access_token,
        refresh_token=payload.refresh_token,
        expires_at=payload.expires_at
    )
    await athlete_repo.save_tokens(tokens)
    await athlete_repo.set_athlete_mapping(payload.athlete_id, user_id)

    return {"success": True, "data": {"synced": True}}
