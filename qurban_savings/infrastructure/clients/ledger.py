"""Accounting webhook client reporting verified savings deposits"""

import asyncio
import logging
import httpx
from typing import Any, Dict
from qurban_savings.config import settings
from qurban_savings.infrastructure.observability.metrics import webhook_latency_histogram, webhook_failure_counter

DEPOSIT_VERIFIED_EVENT = "QURBAN_SAVINGS_DEPOSIT_VERIFIED"


class LedgerClient:
    """Client for sending deposit events to the external accounting system"""

    def __init__(self, webhook_url: str | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.webhook_url = webhook_url or settings.ledger_webhook_url
        self.max_retries = settings.webhook_max_retries
        self.backoff_base = settings.webhook_backoff_base
        self.transport = transport

    async def send_deposit_verified(self, payload: Dict[str, Any]) -> None:
        """
        Post a verified-deposit event, retrying with exponential backoff.

        Retry strategy:
        - Backoff: base * 2^(attempt-1), i.e. 1s, 2s, 4s, 8s with the defaults
        - Retries on non-2xx responses and network failures
        - Re-raises after the final attempt

        Args:
            payload: Event data; `event` is filled in when absent
        """
        body = {"event": DEPOSIT_VERIFIED_EVENT, **payload}
        attempt = 0
        async with httpx.AsyncClient(transport=self.transport) as client:
            while attempt < self.max_retries:
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(
                            self.webhook_url,
                            json=body,
                            timeout=10.0,
                        )
                        response.raise_for_status()
                        return

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    attempt += 1
                    webhook_failure_counter.inc()

                    if attempt >= self.max_retries:
                        logging.error(
                            f"Ledger webhook failed after {attempt} attempts: {e}",
                            extra={"deposit_id": payload.get("deposit_id"), "step": "ledger_webhook"},
                        )
                        raise

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)
