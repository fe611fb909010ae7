"""
ERP Order Models

Pydantic models for the order shape expected by the Dynamics AX CreateOrder
SOAP operation. Every field is always present; absent source data is "".
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class ERPItem(BaseModel):
    """Order line as sent to the ERP"""

    model_config = ConfigDict(frozen=True)

    sku: str = ""
    product_name: str = ""
    quantity: int = 0
    unit_price: str = ""
    variant_title: str = ""


class ERPAddress(BaseModel):
    """Postal address as sent to the ERP"""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    company: str = ""
    address_line1: str = ""
    address_line2: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""
    phone: str = ""


class ERPOrder(BaseModel):
    """Order record shaped for the ERP"""

    model_config = ConfigDict(frozen=True)

    order_id: str = Field(default="", description="Shopify order ID as text")
    order_number: str = ""
    customer_email: str = ""
    customer_name: str = ""
    customer_phone: str = ""
    order_date: str = ""
    total_amount: str = ""
    subtotal_amount: str = ""
    tax_amount: str = ""
    currency: str = ""
    payment_status: str = ""
    fulfillment_status: str = ""
    items: List[ERPItem] = Field(default_factory=list)
    shipping_address: ERPAddress = Field(default_factory=ERPAddress)
    billing_address: ERPAddress = Field(default_factory=ERPAddress)
    timestamp: str = Field(default="", description="UTC time the order was transformed")
