"""
Notification Dispatcher
=======================

``notify`` does two things for one target user:

1. **Durable record** -- inserts a ``notifications`` row and commits.  This
   is the source of truth; a failure here raises ``StoreFailure``.
2. **Best-effort push** -- fans out one delivery per enabled push
   subscription, concurrently, each bounded by its own timeout.  After
   *all* attempts have finished, subscriptions whose endpoint is gone are
   deleted in one batch and successful ones get ``last_used`` stamped.

Nothing in step 2 ever raises to the caller: gateway errors, timeouts and
subscription-store errors are logged and absorbed.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from rideshare.domain.enums import DeliveryOutcome, NotificationType
from rideshare.domain.exceptions import StoreFailure
from rideshare.infrastructure.models import NotificationModel, PushSubscriptionModel
from rideshare.infrastructure.push_gateway import PushGateway

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    notification: NotificationModel
    delivered: list[int] = field(default_factory=list)
    transient: list[int] = field(default_factory=list)
    pruned: list[int] = field(default_factory=list)


class NotificationDispatcher:
    def __init__(
        self,
        notifications,
        subscriptions,
        gateway: PushGateway,
        users=None,
        push_timeout_seconds: float = 5.0,
    ):
        self.notifications = notifications
        self.subscriptions = subscriptions
        self.gateway = gateway
        self.users = users
        self.push_timeout = push_timeout_seconds

    async def notify(
        self,
        user_id: int,
        title: str,
        body: str,
        type: NotificationType,
        related_id: Optional[int] = None,
    ) -> DispatchResult:
        notification = await self.notifications.insert(
            user_id=user_id,
            type=type,
            title=title,
            message=body,
            related_id=related_id,
        )
        result = DispatchResult(notification=notification)
        await self._push(user_id, {"title": title, "body": body}, result)
        return result

    async def broadcast(
        self,
        title: str,
        body: str,
        type: NotificationType = NotificationType.ADMIN,
    ) -> list[DispatchResult]:
        """``notify`` every registered user, one after another.

        Users are handled sequentially because the stores share one session;
        each user's own device fan-out is still concurrent.
        """
        if self.users is None:
            raise RuntimeError("broadcast needs a user directory")
        user_ids = await self.users.list_ids()
        results = [await self.notify(uid, title, body, type) for uid in user_ids]
        logger.info("Broadcast %r to %d users", title, len(results))
        return results

    # ── Push fan-out ──────────────────────────────────────────────────

    async def _push(self, user_id: int, payload: dict, result: DispatchResult) -> None:
        try:
            if self.users is not None and not await self.users.push_enabled(user_id):
                logger.debug("Push disabled for user %s", user_id)
                return
            subs = await self.subscriptions.list_enabled_for_user(user_id)
        except StoreFailure:
            logger.exception("Could not load push subscriptions for user %s", user_id)
            return

        if not subs:
            return

        # Join before pruning: classification needs every outcome
        outcomes = await asyncio.gather(
            *(self._deliver(sub, payload) for sub in subs)
        )

        for sub, outcome in zip(subs, outcomes):
            if outcome is DeliveryOutcome.SUCCESS:
                result.delivered.append(sub.id)
            elif outcome is DeliveryOutcome.ENDPOINT_GONE:
                result.pruned.append(sub.id)
            else:
                result.transient.append(sub.id)

        logger.info(
            "Push for user %s: %d delivered, %d transient, %d gone",
            user_id,
            len(result.delivered),
            len(result.transient),
            len(result.pruned),
        )

        try:
            if result.pruned:
                await self.subscriptions.delete_many(result.pruned)
            if result.delivered:
                await self.subscriptions.touch_last_used(result.delivered)
        except StoreFailure:
            logger.exception("Could not update push subscriptions for user %s", user_id)

    async def _deliver(
        self, sub: PushSubscriptionModel, payload: dict
    ) -> DeliveryOutcome:
        try:
            return await asyncio.wait_for(
                self.gateway.send(sub.subscription, payload),
                timeout=self.push_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Push to subscription %s timed out after %.1fs",
                sub.id,
                self.push_timeout,
            )
            return DeliveryOutcome.TRANSIENT_FAILURE
        except Exception:
            logger.exception("Push to subscription %s failed", sub.id)
            return DeliveryOutcome.TRANSIENT_FAILURE
