"""
Shopify Webhook Endpoint

Receives Shopify order webhooks, records them in the audit log and forwards
them synchronously to the ERP. Responds 200 once the ERP has accepted the
order, 400 for unparseable payloads and 500 when delivery is exhausted.
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from erp_bridge.models.delivery import DeliveryFailed
from erp_bridge.models.shopify_order import ShopifyOrder
from erp_bridge.services.audit_log import AuditLogger
from erp_bridge.services.pipeline import OrderPipeline
from erp_bridge.utils.exceptions import ERPDeliveryException, InvalidPayloadException
from erp_bridge.utils.logging_config import get_correlation_id, get_logger, set_correlation_id

logger = get_logger(__name__)

router = APIRouter(tags=["webhook"])


def get_audit_logger(request: Request) -> AuditLogger:
    return request.app.state.audit_logger


def get_pipeline(request: Request) -> OrderPipeline:
    return request.app.state.pipeline


def parse_order(body: bytes) -> ShopifyOrder:
    """
    Parse a webhook body into a Shopify order.

    Raises:
        InvalidPayloadException: If the body is not JSON or has mistyped fields
    """
    try:
        return ShopifyOrder.model_validate_json(body)
    except ValidationError as e:
        raise InvalidPayloadException(
            details={"errors": e.errors(include_url=False, include_context=False, include_input=False)}
        ) from e


@router.post("/webhook")
async def shopify_webhook(
    request: Request,
    pipeline: OrderPipeline = Depends(get_pipeline),
    audit_logger: AuditLogger = Depends(get_audit_logger),
):
    """
    Shopify order webhook endpoint.

    Parses the order, logs the incoming webhook, then maps, encodes and
    sends it to the ERP with retries before answering.
    """
    request_id = get_correlation_id() or set_correlation_id()

    try:
        body = await request.body()
        webhook_topic = request.headers.get("X-Shopify-Topic", "")
        logger.info(
            f"Received webhook: {webhook_topic}",
            extra={"topic": webhook_topic, "request_id": request_id},
        )

        order = parse_order(body)
        order_id = str(order.id)
        logger.info(
            f"Processing order ID: {order.id}, Order Number: {order.order_number}",
            extra={"order_id": order_id, "order_number": order.order_number},
        )

        await audit_logger.log_incoming_webhook(request_id, request.headers, body, order_id)

        outcome = await pipeline.deliver(order, request_id)

        if isinstance(outcome, DeliveryFailed):
            raise ERPDeliveryException(
                f"Failed to send order to ERP after {outcome.attempts_made} attempts",
                attempts=outcome.attempts_made,
                last_status_code=outcome.last_status_code,
                details={"order_id": order_id, "last_error": outcome.last_error},
            )

        logger.info(
            f"Successfully processed order {order_id}",
            extra={"order_id": order_id, "attempts": outcome.attempts},
        )

        return JSONResponse(
            status_code=200,
            content={
                "status": "success",
                "order_id": order_id,
                "request_id": request_id,
                "message": "Order successfully sent to ERP",
            },
        )

    except InvalidPayloadException as e:
        logger.error(
            f"Error parsing Shopify order: {e.message}",
            extra={"error": e.to_dict(), "request_id": request_id},
        )
        raise HTTPException(status_code=400, detail=e.message)

    except ERPDeliveryException as e:
        logger.error(
            f"Error sending order to ERP: {e.message}",
            extra={"error": e.to_dict(), "request_id": request_id},
        )
        raise HTTPException(status_code=500, detail="Internal server error")

    except Exception as e:
        logger.error(
            f"Unexpected error processing webhook: {e}",
            extra={"error": str(e), "request_id": request_id},
        )
        raise HTTPException(status_code=500, detail="Internal server error")
