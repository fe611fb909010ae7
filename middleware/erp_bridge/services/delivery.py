"""
ERP Delivery Coordinator

Drives ERP delivery attempts within a fixed retry budget.

State machine: PENDING -> ATTEMPTING -> SUCCEEDED | EXHAUSTED.
The delay before attempt k+1 is k * retry_delay (linear, no jitter).
Every non-2xx status is retried exactly like a transport error; there is no
classification of permanent vs. transient HTTP failures.
"""

import asyncio
from typing import Dict, Optional

from erp_bridge.config import settings
from erp_bridge.models.delivery import (
    AttemptOk,
    Delivered,
    DeliveryFailed,
    DeliveryOutcome,
    DeliveryState,
    HTTPError,
    describe_failure,
)
from erp_bridge.services.erp_client import ERPClient
from erp_bridge.utils.logging_config import get_logger
from erp_bridge.utils.retry import SleepFunc, calculate_backoff

logger = get_logger(__name__)


class DeliveryCoordinator:
    """Retries ERP delivery with linear backoff until success or exhaustion"""

    def __init__(
        self,
        client: ERPClient,
        max_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
        sleep: Optional[SleepFunc] = None,
    ):
        self.client = client
        self.max_attempts = max_attempts if max_attempts is not None else settings.max_retry_attempts
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        self.retry_delay = retry_delay if retry_delay is not None else settings.retry_delay_seconds
        self._sleep = sleep or asyncio.sleep
        self.state = DeliveryState.PENDING

    async def deliver(
        self,
        endpoint: str,
        envelope: str,
        headers: Dict[str, str],
        request_id: str,
        order_id: str,
    ) -> DeliveryOutcome:
        """
        Deliver an envelope, retrying failed attempts.

        Args:
            endpoint: ERP SOAP URL
            envelope: Encoded SOAP document
            headers: HTTP headers
            request_id: Request ID for log correlation
            order_id: Shopify order ID

        Returns:
            Delivered on the first 2xx, DeliveryFailed once the budget is spent
        """
        self.state = DeliveryState.PENDING
        last_error = ""
        last_status_code: Optional[int] = None

        for attempt in range(1, self.max_attempts + 1):
            self.state = DeliveryState.ATTEMPTING
            logger.info(
                f"Sending SOAP request to {endpoint} (attempt {attempt})",
                extra={"attempt": attempt, "max_attempts": self.max_attempts, "order_id": order_id},
            )

            result = await self.client.attempt(endpoint, envelope, headers, request_id, order_id)

            if isinstance(result, AttemptOk):
                self.state = DeliveryState.SUCCEEDED
                logger.info(
                    f"Successfully sent order {order_id} to ERP (attempt {attempt})",
                    extra={"attempt": attempt, "status_code": result.status_code},
                )
                return Delivered(
                    status_code=result.status_code,
                    response_body=result.body,
                    attempts=attempt,
                )

            last_error = describe_failure(result)
            last_status_code = result.status_code if isinstance(result, HTTPError) else None
            logger.warning(
                f"Attempt {attempt}/{self.max_attempts} failed: {last_error}",
                extra={"attempt": attempt, "status_code": result.status_code, "order_id": order_id},
            )

            if attempt < self.max_attempts:
                backoff_time = calculate_backoff(attempt, self.retry_delay)
                await self._sleep(backoff_time)

        self.state = DeliveryState.EXHAUSTED
        logger.error(
            f"Failed to send order {order_id} to ERP after {self.max_attempts} attempts",
            extra={"max_attempts": self.max_attempts, "error": last_error},
        )
        return DeliveryFailed(
            last_error=last_error,
            attempts_made=self.max_attempts,
            last_status_code=last_status_code,
        )
