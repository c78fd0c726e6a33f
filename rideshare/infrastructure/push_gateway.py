"""
Push delivery gateway.

``PushGateway`` is the port the notification dispatcher talks to; it sends
one payload to one device endpoint and classifies the result:

* ``SUCCESS``            -- the push service accepted the message.
* ``ENDPOINT_GONE``      -- 404 / 410, or a subscription that cannot be
  used at all (no endpoint URL, unusable ``keys``): the device is
  permanently unreachable and should be pruned.
* ``TRANSIENT_FAILURE``  -- anything else (5xx, 429, 401/403, timeouts,
  connection errors).  Never pruned, never retried.

``WebPushGateway`` speaks the Web Push protocol through ``pywebpush``: the
payload is encrypted (aes128gcm) with the subscription's ``p256dh`` /
``auth`` keys and the request carries a VAPID-signed ``Authorization``
header.  ``pywebpush`` is blocking, so each send runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Any

import requests
from pywebpush import WebPushException, webpush

from rideshare.domain.enums import DeliveryOutcome

logger = logging.getLogger(__name__)

GONE_STATUS_CODES = frozenset({404, 410})


class PushGateway(ABC):
    @abstractmethod
    async def send(
        self, subscription: dict[str, Any], payload: dict[str, Any]
    ) -> DeliveryOutcome: ...

    async def aclose(self) -> None:
        """Release transport resources; no-op by default."""


class WebPushGateway(PushGateway):
    def __init__(
        self,
        *,
        vapid_private_key: str | None,
        vapid_subject: str,
        timeout_seconds: float = 5.0,
        ttl_seconds: int = 86_400,
        session: requests.Session | None = None,
    ):
        if not vapid_private_key:
            logger.warning("No VAPID private key configured; push services will reject sends")
        self._vapid_private_key = vapid_private_key
        self._vapid_subject = vapid_subject
        self._timeout = timeout_seconds
        self._ttl = ttl_seconds
        self._session = session or requests.Session()

    async def aclose(self) -> None:
        self._session.close()

    async def send(
        self, subscription: dict[str, Any], payload: dict[str, Any]
    ) -> DeliveryOutcome:
        endpoint = (subscription or {}).get("endpoint")
        if not endpoint:
            logger.warning("Push subscription has no endpoint; treating as gone")
            return DeliveryOutcome.ENDPOINT_GONE

        try:
            await asyncio.to_thread(self._send_blocking, subscription, payload)
        except WebPushException as exc:
            status = exc.response.status_code if exc.response is not None else None
            if status is None:
                # Raised before any request: the stored subscription is unusable
                logger.warning("Push subscription for %s is malformed: %s", endpoint, exc)
                return DeliveryOutcome.ENDPOINT_GONE
            if status in GONE_STATUS_CODES:
                logger.info("Push endpoint %s is gone (HTTP %d)", endpoint, status)
                return DeliveryOutcome.ENDPOINT_GONE
            logger.warning("Push to %s rejected (HTTP %d)", endpoint, status)
            return DeliveryOutcome.TRANSIENT_FAILURE
        except requests.Timeout:
            logger.warning("Push to %s timed out", endpoint)
            return DeliveryOutcome.TRANSIENT_FAILURE
        except requests.RequestException as exc:
            logger.warning("Push to %s failed: %s", endpoint, exc)
            return DeliveryOutcome.TRANSIENT_FAILURE

        return DeliveryOutcome.SUCCESS

    def _send_blocking(self, subscription: dict[str, Any], payload: dict[str, Any]):
        # webpush() writes "aud" and "exp" into the claims, so each call gets its own
        return webpush(
            subscription_info=subscription,
            data=json.dumps(payload),
            vapid_private_key=self._vapid_private_key,
            vapid_claims={"sub": self._vapid_subject} if self._vapid_private_key else None,
            timeout=self._timeout,
            ttl=self._ttl,
            headers={"Urgency": "normal"},
            requests_session=self._session,
        )
