"""
ERP SOAP Client

Performs a single SOAP POST to the ERP endpoint and classifies the result.
Retrying is the caller's job (see delivery.py).
"""

from typing import Dict, Optional

import httpx

from erp_bridge.config import settings
from erp_bridge.models.delivery import AttemptOk, AttemptResult, HTTPError, TransportError
from erp_bridge.services.audit_log import AuditLogger
from erp_bridge.utils.logging_config import get_logger

logger = get_logger(__name__)


def soap_headers(soap_action: str, user_agent: Optional[str] = None) -> Dict[str, str]:
    """
    HTTP headers for a SOAP 1.1 request.

    Args:
        soap_action: Operation URI, sent quoted in the SOAPAction header
        user_agent: User-Agent value (default from config)

    Returns:
        Header dictionary
    """
    return {
        "Content-Type": "text/xml; charset=utf-8",
        "SOAPAction": f'"{soap_action}"',
        "User-Agent": user_agent or settings.user_agent,
    }


class ERPClient:
    """
    Client for the ERP SOAP endpoint.

    Uses a shared httpx.AsyncClient when one is given (the FastAPI lifespan
    opens one per process); otherwise each attempt opens its own client.
    """

    def __init__(
        self,
        audit_logger: AuditLogger,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        self.audit_logger = audit_logger
        self._http_client = http_client
        self.timeout = timeout if timeout is not None else settings.http_timeout

    async def attempt(
        self,
        endpoint: str,
        envelope: str,
        headers: Dict[str, str],
        request_id: str,
        order_id: str,
    ) -> AttemptResult:
        """
        Send the envelope once.

        Writes an outgoing_soap audit entry before sending and a soap_response
        entry afterwards, whatever the outcome.

        Args:
            endpoint: ERP SOAP URL
            envelope: Encoded SOAP document
            headers: HTTP headers
            request_id: Request ID for log correlation
            order_id: Shopify order ID for log correlation

        Returns:
            AttemptOk, HTTPError or TransportError
        """
        await self.audit_logger.log_outgoing_soap(request_id, endpoint, headers, envelope, order_id)

        try:
            response = await self._post(endpoint, envelope, headers)
        except httpx.RequestError as e:
            cause = f"{type(e).__name__}: {e}"
            logger.warning(
                f"Transport error calling ERP: {cause}",
                extra={"endpoint": endpoint, "order_id": order_id},
            )
            await self.audit_logger.log_soap_response(request_id, 0, None, "", order_id, error=cause)
            return TransportError(cause=cause)

        body = response.text
        await self.audit_logger.log_soap_response(
            request_id, response.status_code, response.headers, body, order_id
        )

        if 200 <= response.status_code < 300:
            return AttemptOk(status_code=response.status_code, body=body)
        return HTTPError(status_code=response.status_code, body=body)

    async def _post(self, endpoint: str, envelope: str, headers: Dict[str, str]) -> httpx.Response:
        content = envelope.encode("utf-8")
        if self._http_client is not None:
            return await self._http_client.post(
                endpoint, content=content, headers=headers, timeout=self.timeout
            )
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(endpoint, content=content, headers=headers)
