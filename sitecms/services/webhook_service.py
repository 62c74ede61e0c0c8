"""
Webhook Service

Per-site webhook subscriptions and event dispatch. Deliveries run in
background tasks, one per webhook, each with its own database session.
Each attempt is logged and failed attempts are retried with backoff
(at-least-once, best effort).
"""

import asyncio
import hashlib
import hmac
import json
import logging
import secrets
import time
from datetime import datetime, timezone

import httpx
from fastapi.encoders import jsonable_encoder
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms import database
from sitecms.config import settings
from sitecms.exceptions import ValidationError, WebhookNotFoundError
from sitecms.models.webhook import Webhook, WebhookDelivery, WebhookEvent, WebhookStatus

logger = logging.getLogger(__name__)

# Maximum retries for failed deliveries
MAX_RETRIES = 3

# Consecutive failures before a webhook is marked as failed
FAILURE_THRESHOLD = 5

# Delay before each retry (seconds)
RETRY_BACKOFF = [5, 30, 300]

# Strong references to in-flight delivery tasks
_background_tasks: set[asyncio.Task] = set()


def _validate_events(events: list[str]) -> None:
    valid_events = {e.value for e in WebhookEvent}
    for event in events:
        if event not in valid_events:
            raise ValidationError(f"Invalid event: {event}", field="events")


class WebhookService:
    """Service for managing webhooks and dispatching events."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_webhook(
        self,
        site_id: str,
        name: str,
        url: str,
        events: list[str],
        max_retries: int = MAX_RETRIES,
    ) -> Webhook:
        _validate_events(events)

        webhook = Webhook(
            site_id=site_id,
            name=name,
            url=url,
            secret=secrets.token_urlsafe(32),
            events=list(dict.fromkeys(events)),
            max_retries=max_retries,
        )
        self.db.add(webhook)
        await self.db.commit()
        await self.db.refresh(webhook)

        logger.info(f"Webhook {webhook.id} created for site {site_id}")
        return webhook

    async def list_webhooks(self, site_id: str) -> list[Webhook]:
        result = await self.db.execute(
            select(Webhook).where(Webhook.site_id == site_id).order_by(Webhook.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_webhook(self, site_id: str, webhook_id: int) -> Webhook:
        result = await self.db.execute(
            select(Webhook).where(Webhook.id == webhook_id, Webhook.site_id == site_id)
        )
        webhook = result.scalar_one_or_none()
        if webhook is None:
            raise WebhookNotFoundError(webhook_id)
        return webhook

    async def delete_webhook(self, site_id: str, webhook_id: int) -> None:
        webhook = await self.get_webhook(site_id, webhook_id)
        await self.db.delete(webhook)
        await self.db.commit()
        logger.info(f"Webhook {webhook_id} deleted from site {site_id}")

    async def get_deliveries(self, site_id: str, webhook_id: int, limit: int = 50) -> list[WebhookDelivery]:
        """Delivery history for a webhook, newest first."""
        await self.get_webhook(site_id, webhook_id)
        result = await self.db.execute(
            select(WebhookDelivery)
            .where(WebhookDelivery.webhook_id == webhook_id)
            .order_by(WebhookDelivery.created_at.desc(), WebhookDelivery.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def subscribed_webhooks(self, site_id: str, event: str) -> list[Webhook]:
        result = await self.db.execute(
            select(Webhook).where(
                Webhook.site_id == site_id,
                Webhook.status != WebhookStatus.DISABLED,
            )
        )
        return [wh for wh in result.scalars().all() if wh.listens_to(event)]

    async def dispatch_event(
        self,
        site_id: str,
        event: str,
        payload: dict,
        webhook_ids: list[int] | None = None,
    ) -> list[dict]:
        """
        Deliver an event to the site's subscribed webhooks.

        Args:
            site_id: Site the event belongs to
            event: Event name (e.g., "content.published")
            payload: Event payload data
            webhook_ids: Restrict delivery to these webhooks

        Returns:
            List of delivery results
        """
        subscribed = await self.subscribed_webhooks(site_id, event)
        if webhook_ids is not None:
            subscribed = [wh for wh in subscribed if wh.id in webhook_ids]

        results = []
        for webhook in subscribed:
            results.append(await self._deliver_webhook(webhook, event, payload))
        return results

    async def _deliver_webhook(
        self,
        webhook: Webhook,
        event: str,
        payload: dict,
        attempt: int = 1,
    ) -> dict:
        """Deliver one event to one endpoint, recording the attempt."""
        full_payload = {
            "event": event,
            "siteId": webhook.site_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "data": payload,
        }
        payload_json = json.dumps(full_payload)

        headers = {
            "Content-Type": "application/json",
            "X-Webhook-Event": event,
            "X-Site-ID": webhook.site_id,
            "X-Webhook-Signature": self._create_signature(webhook.secret, payload_json),
            "X-Webhook-Timestamp": str(int(time.time())),
        }

        start_time = time.time()
        success = False
        status_code = None
        response_excerpt = None
        error_message = None

        try:
            async with httpx.AsyncClient(timeout=settings.webhook_timeout_seconds) as client:
                response = await client.post(webhook.url, content=payload_json, headers=headers)
                status_code = response.status_code
                response_excerpt = response.text[:1000]
                success = 200 <= status_code < 300
        except httpx.TimeoutException:
            error_message = "Request timed out"
        except httpx.RequestError as e:
            error_message = f"Request error: {str(e)}"

        duration_ms = int((time.time() - start_time) * 1000)

        self.db.add(
            WebhookDelivery(
                webhook_id=webhook.id,
                event=event,
                payload=full_payload,
                status_code=status_code,
                response_excerpt=response_excerpt,
                success=success,
                error_message=error_message,
                duration_ms=duration_ms,
                attempt=attempt,
            )
        )

        webhook.last_delivery_at = datetime.utcnow()
        webhook.delivery_count += 1

        if success:
            webhook.success_count += 1
            webhook.consecutive_failures = 0
            webhook.status = WebhookStatus.ACTIVE
        else:
            webhook.consecutive_failures += 1
            webhook.last_error_at = datetime.utcnow()
            webhook.last_error = error_message or f"HTTP {status_code}"

            if webhook.consecutive_failures >= FAILURE_THRESHOLD:
                webhook.status = WebhookStatus.FAILED
                logger.warning(f"Webhook {webhook.id} marked as failed after {FAILURE_THRESHOLD} failures")

        await self.db.commit()

        if not success and attempt < webhook.max_retries:
            await self._schedule_retry(webhook, event, payload, attempt + 1)

        return {
            "webhook_id": webhook.id,
            "event": event,
            "success": success,
            "status_code": status_code,
            "attempt": attempt,
            "error": error_message,
        }

    async def _schedule_retry(self, webhook: Webhook, event: str, payload: dict, attempt: int) -> None:
        delay = RETRY_BACKOFF[min(attempt - 2, len(RETRY_BACKOFF) - 1)]
        logger.info(f"Retrying webhook {webhook.id} (attempt {attempt}) in {delay}s")
        await asyncio.sleep(delay)
        await self._deliver_webhook(webhook, event, payload, attempt)

    def _create_signature(self, secret: str, payload: str) -> str:
        """Create HMAC-SHA256 signature for webhook payload."""
        return hmac.new(secret.encode(), payload.encode(), hashlib.sha256).hexdigest()

    @staticmethod
    def verify_signature(secret: str, payload: str, signature: str) -> bool:
        """Verify a webhook signature on the receiving end."""
        expected = hmac.new(secret.encode(), payload.encode(), hashlib.sha256).hexdigest()
        return hmac.compare_digest(expected, signature)


# ============== Background dispatch ==============


async def _run_delivery(site_id: str, event: str, payload: dict, webhook_id: int) -> None:
    try:
        async with database.AsyncSessionLocal() as db:
            await WebhookService(db).dispatch_event(site_id, event, payload, webhook_ids=[webhook_id])
    except Exception:
        logger.exception(f"Webhook {webhook_id} dispatch for {event} on site {site_id} failed")


def schedule_delivery(site_id: str, event: str, payload: dict, webhook_ids: list[int]) -> list[asyncio.Task]:
    """Start one delivery task per webhook; retries of one never hold up another."""
    tasks = []
    for webhook_id in webhook_ids:
        task = asyncio.create_task(_run_delivery(site_id, event, payload, webhook_id))
        _background_tasks.add(task)
        task.add_done_callback(_background_tasks.discard)
        tasks.append(task)
    return tasks


async def trigger_event(db: AsyncSession, site_id: str, event: str | WebhookEvent, payload: dict) -> int:
    """
    Queue ``event`` for every subscribed webhook of the site.

    Returns the number of webhooks the event was queued for. Never raises
    on delivery problems; those are logged by the background task.
    """
    event = event.value if isinstance(event, WebhookEvent) else event
    webhooks = await WebhookService(db).subscribed_webhooks(site_id, event)
    if not webhooks:
        return 0

    schedule_delivery(site_id, event, jsonable_encoder(payload), [wh.id for wh in webhooks])
    logger.debug(f"Queued {event} for {len(webhooks)} webhook(s) on site {site_id}")
    return len(webhooks)
