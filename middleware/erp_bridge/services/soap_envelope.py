"""
SOAP Envelope Encoder

Serializes an ERP order into the SOAP 1.1 request body of the Dynamics AX
CreateOrder operation.

The document layout (element order, nesting, two-space indentation) is part of
the contract with the AX service and is reproduced line for line. All text
values go through the same escaping routine; the encoder never reads the clock,
the order already carries its timestamp.
"""

from typing import List, Sequence, Tuple
from xml.sax.saxutils import escape

from erp_bridge.models.erp_order import ERPAddress, ERPItem, ERPOrder

SOAP_ENV_NS = "http://schemas.xmlsoap.org/soap/envelope/"
TEMPURI_NS = "http://tempuri.org/"

# Quotes and carriage returns are written as numeric character references;
# a parser would otherwise normalize a raw CR to LF.
_CHAR_REFERENCES = {'"': "&#34;", "'": "&#39;", "\r": "&#13;"}

INDENT = "  "


def xml_escape(value: str) -> str:
    """Escape &, <, >, quotes and CR for embedding in XML text"""
    return escape(value, _CHAR_REFERENCES)


def _element(depth: int, tag: str, value: str) -> str:
    return f"{INDENT * depth}<tem:{tag}>{value}</tem:{tag}>"


class SoapEnvelopeEncoder:
    """Builds CreateOrder SOAP envelopes"""

    ORDER_DEPTH = 4

    def encode(self, order: ERPOrder) -> str:
        """
        Build the SOAP envelope for an ERP order.

        Args:
            order: ERP order, timestamp included

        Returns:
            SOAP XML document as a string
        """
        depth = self.ORDER_DEPTH
        lines: List[str] = [
            '<?xml version="1.0" encoding="utf-8"?>',
            f'<soap:Envelope xmlns:soap="{SOAP_ENV_NS}" ',
            f'               xmlns:tem="{TEMPURI_NS}">',
            f"{INDENT}<soap:Header/>",
            f"{INDENT}<soap:Body>",
            f"{INDENT * 2}<tem:CreateOrder>",
            f"{INDENT * 3}<tem:order>",
        ]
        lines.extend(self._scalars(depth, self._order_fields(order)))
        lines.extend(self._address(depth, "ShippingAddress", order.shipping_address))
        lines.extend(self._address(depth, "BillingAddress", order.billing_address))
        lines.append(f"{INDENT * depth}<tem:Items>")
        for item in order.items:
            lines.extend(self._item(depth + 1, item))
        lines.append(f"{INDENT * depth}</tem:Items>")
        lines.append(_element(depth, "Timestamp", xml_escape(order.timestamp)))
        lines.extend(
            [
                f"{INDENT * 3}</tem:order>",
                f"{INDENT * 2}</tem:CreateOrder>",
                f"{INDENT}</soap:Body>",
                "</soap:Envelope>",
            ]
        )
        return "\n".join(lines)

    @staticmethod
    def _order_fields(order: ERPOrder) -> List[Tuple[str, str]]:
        return [
            ("OrderID", order.order_id),
            ("OrderNumber", order.order_number),
            ("CustomerEmail", order.customer_email),
            ("CustomerName", order.customer_name),
            ("CustomerPhone", order.customer_phone),
            ("OrderDate", order.order_date),
            ("TotalAmount", order.total_amount),
            ("SubtotalAmount", order.subtotal_amount),
            ("TaxAmount", order.tax_amount),
            ("Currency", order.currency),
            ("PaymentStatus", order.payment_status),
            ("FulfillmentStatus", order.fulfillment_status),
        ]

    @staticmethod
    def _scalars(depth: int, fields: Sequence[Tuple[str, str]]) -> List[str]:
        return [_element(depth, tag, xml_escape(value)) for tag, value in fields]

    def _address(self, depth: int, tag: str, address: ERPAddress) -> List[str]:
        fields = [
            ("Name", address.name),
            ("Company", address.company),
            ("AddressLine1", address.address_line1),
            ("AddressLine2", address.address_line2),
            ("City", address.city),
            ("State", address.state),
            ("PostalCode", address.postal_code),
            ("Country", address.country),
            ("Phone", address.phone),
        ]
        return [
            f"{INDENT * depth}<tem:{tag}>",
            *self._scalars(depth + 1, fields),
            f"{INDENT * depth}</tem:{tag}>",
        ]

    def _item(self, depth: int, item: ERPItem) -> List[str]:
        return [
            f"{INDENT * depth}<tem:Item>",
            _element(depth + 1, "SKU", xml_escape(item.sku)),
            _element(depth + 1, "ProductName", xml_escape(item.product_name)),
            _element(depth + 1, "Quantity", str(item.quantity)),
            _element(depth + 1, "UnitPrice", xml_escape(item.unit_price)),
            _element(depth + 1, "VariantTitle", xml_escape(item.variant_title)),
            f"{INDENT * depth}</tem:Item>",
        ]


# Global encoder instance
soap_envelope_encoder = SoapEnvelopeEncoder()
