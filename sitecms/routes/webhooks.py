"""
Webhook Routes

API endpoints for webhook subscription management.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.auth import Principal, require_site_admin
from sitecms.database import get_db
from sitecms.models.webhook import WebhookEvent
from sitecms.schemas.webhook import (
    WebhookCreate,
    WebhookCreatedResponse,
    WebhookDeliveryResponse,
    WebhookResponse,
)
from sitecms.services.webhook_service import WebhookService
from sitecms.utils.responses import success_response

router = APIRouter(prefix="/api/cms/{site_id}/webhooks", tags=["Webhooks"])


@router.get("/events")
async def list_events(site_id: str, principal: Principal = Depends(require_site_admin)):
    """Event names a webhook can subscribe to."""
    return success_response([e.value for e in WebhookEvent])


@router.get("")
async def list_webhooks(
    site_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_site_admin),
):
    webhooks = await WebhookService(db).list_webhooks(site_id)
    return success_response([WebhookResponse.model_validate(w).to_api() for w in webhooks])


@router.post("", status_code=201)
async def create_webhook(
    site_id: str,
    body: WebhookCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_site_admin),
):
    webhook = await WebhookService(db).create_webhook(
        site_id, name=body.name, url=str(body.url), events=body.events, max_retries=body.max_retries
    )
    return success_response(
        WebhookCreatedResponse.model_validate(webhook).to_api(),
        message="Webhook created. Store the secret now; it is not shown again.",
        status_code=201,
    )


@router.delete("/{webhook_id}")
async def delete_webhook(
    site_id: str,
    webhook_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_site_admin),
):
    await WebhookService(db).delete_webhook(site_id, webhook_id)
    return success_response(None, message="Webhook deleted")


@router.get("/{webhook_id}/deliveries")
async def list_deliveries(
    site_id: str,
    webhook_id: int,
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_site_admin),
):
    deliveries = await WebhookService(db).get_deliveries(site_id, webhook_id, limit=limit)
    return success_response([WebhookDeliveryResponse.model_validate(d).to_api() for d in deliveries])
