"""
Shopify to ERP Order Mapper

Pure mapping from the Shopify order webhook shape to the ERP order shape.
No I/O. Money values are copied as strings, never converted to numbers.
"""

from datetime import datetime, timezone
from typing import Optional

from erp_bridge.models.erp_order import ERPAddress, ERPItem, ERPOrder
from erp_bridge.models.shopify_order import (
    ShopifyAddress,
    ShopifyLineItem,
    ShopifyOrder,
)

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """RFC 3339 UTC timestamp with second precision"""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def display_name(first_name: str, last_name: str) -> str:
    # Not trimmed: an empty part leaves the separating space in place
    return f"{first_name} {last_name}"


class OrderMapper:
    """Maps Shopify orders to ERP orders"""

    def map(self, order: ShopifyOrder, timestamp: Optional[str] = None) -> ERPOrder:
        """
        Transform a Shopify order into an ERP order.

        Args:
            order: Parsed Shopify order
            timestamp: Transformation time to embed; defaults to now (UTC)

        Returns:
            ERP order carrying the transformation timestamp
        """
        return ERPOrder(
            order_id=str(order.id),
            order_number=str(order.order_number),
            customer_email=order.email,
            customer_name=display_name(order.customer.first_name, order.customer.last_name),
            customer_phone=order.customer.phone,
            order_date=order.created_at,
            total_amount=order.total_price,
            subtotal_amount=order.subtotal_price,
            tax_amount=order.total_tax,
            currency=order.currency,
            payment_status=order.financial_status,
            fulfillment_status=order.fulfillment_status,
            items=[self.map_line_item(item) for item in order.line_items],
            shipping_address=self.map_address(order.shipping_address),
            billing_address=self.map_address(order.billing_address),
            timestamp=timestamp if timestamp is not None else utc_timestamp(),
        )

    @staticmethod
    def map_line_item(item: ShopifyLineItem) -> ERPItem:
        return ERPItem(
            sku=item.sku,
            product_name=item.title,
            quantity=item.quantity,
            unit_price=item.price,
            variant_title=item.variant_title,
        )

    @staticmethod
    def map_address(address: ShopifyAddress) -> ERPAddress:
        return ERPAddress(
            name=display_name(address.first_name, address.last_name),
            company=address.company,
            address_line1=address.address1,
            address_line2=address.address2,
            city=address.city,
            state=address.province,
            postal_code=address.zip,
            country=address.country,
            phone=address.phone,
        )


# Global order mapper instance
order_mapper = OrderMapper()
