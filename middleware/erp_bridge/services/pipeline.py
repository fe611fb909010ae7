"""
Order Delivery Pipeline

Shopify order -> ERP order -> SOAP envelope -> ERP, with retries.
"""

from typing import Optional

import httpx

from erp_bridge.config import settings
from erp_bridge.models.delivery import DeliveryOutcome
from erp_bridge.models.shopify_order import ShopifyOrder
from erp_bridge.services.audit_log import AuditLogger
from erp_bridge.services.delivery import DeliveryCoordinator
from erp_bridge.services.erp_client import ERPClient, soap_headers
from erp_bridge.services.order_mapper import OrderMapper
from erp_bridge.services.soap_envelope import SoapEnvelopeEncoder
from erp_bridge.utils.logging_config import get_logger
from erp_bridge.utils.retry import SleepFunc

logger = get_logger(__name__)


class OrderPipeline:
    """Maps, encodes and delivers one Shopify order per call"""

    def __init__(
        self,
        audit_logger: AuditLogger,
        http_client: Optional[httpx.AsyncClient] = None,
        endpoint: Optional[str] = None,
        soap_action: Optional[str] = None,
        max_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
        sleep: Optional[SleepFunc] = None,
    ):
        self.audit_logger = audit_logger
        self.endpoint = endpoint or settings.erp_endpoint
        self.soap_action = soap_action or settings.soap_action
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.sleep = sleep
        self.mapper = OrderMapper()
        self.encoder = SoapEnvelopeEncoder()
        self.client = ERPClient(audit_logger, http_client=http_client)

    async def deliver(self, order: ShopifyOrder, request_id: str) -> DeliveryOutcome:
        """
        Deliver a Shopify order to the ERP.

        Args:
            order: Parsed Shopify order
            request_id: Request ID used to correlate log entries

        Returns:
            Terminal delivery outcome
        """
        erp_order = self.mapper.map(order)
        envelope = self.encoder.encode(erp_order)
        logger.debug(
            f"Transformed order {erp_order.order_id} for ERP",
            extra={"order_id": erp_order.order_id, "item_count": len(erp_order.items)},
        )

        # Coordinator state belongs to this invocation only
        coordinator = DeliveryCoordinator(
            self.client,
            max_attempts=self.max_attempts,
            retry_delay=self.retry_delay,
            sleep=self.sleep,
        )
        return await coordinator.deliver(
            self.endpoint,
            envelope,
            soap_headers(self.soap_action),
            request_id,
            erp_order.order_id,
        )
