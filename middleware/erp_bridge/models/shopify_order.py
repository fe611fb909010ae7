"""
Shopify Order Models

Pydantic models for the Shopify orders/create webhook payload.

Only the fields the ERP mapping needs are declared; unknown keys are ignored.
Missing keys and JSON nulls fall back to the field's zero value so a sparse
webhook still produces a complete order. Money fields stay strings.
"""

from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class ShopifyModel(BaseModel):
    """Base model: frozen, ignores unknown keys, treats null as absent"""

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def null_as_default(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None:
            field = cls.model_fields[info.field_name]
            return field.get_default(call_default_factory=True)
        return v


class ShopifyCustomer(ShopifyModel):
    """Customer block of a Shopify order"""

    id: int = 0
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    phone: str = ""


class ShopifyLineItem(ShopifyModel):
    """Single line item of a Shopify order"""

    id: int = 0
    product_id: int = 0
    variant_id: int = 0
    title: str = ""
    name: str = ""
    quantity: int = Field(default=0, ge=0)
    price: str = Field(default="", description="Unit price as a decimal string")
    sku: str = ""
    variant_title: str = ""
    fulfillment_service: str = ""


class ShopifyAddress(ShopifyModel):
    """Shipping or billing address of a Shopify order"""

    first_name: str = ""
    last_name: str = ""
    company: str = ""
    address1: str = ""
    address2: str = ""
    city: str = ""
    province: str = ""
    country: str = ""
    zip: str = ""
    phone: str = ""
    province_code: str = ""
    country_code: str = ""


class ShopifyOrder(ShopifyModel):
    """Shopify order as delivered by the orders/create webhook"""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 12345,
                "order_number": 1001,
                "email": "customer@example.com",
                "total_price": "150.00",
                "currency": "USD",
                "line_items": [
                    {"sku": "TEST-SKU-001", "title": "Test Product", "quantity": 2, "price": "65.00"}
                ],
            }
        }
    )

    id: int = Field(default=0, description="Shopify order ID")
    order_number: int = 0
    email: str = ""
    created_at: str = ""
    updated_at: str = ""
    total_price: str = ""
    subtotal_price: str = ""
    total_tax: str = ""
    currency: str = ""
    financial_status: str = ""
    fulfillment_status: str = ""
    customer: ShopifyCustomer = Field(default_factory=ShopifyCustomer)
    line_items: List[ShopifyLineItem] = Field(default_factory=list)
    shipping_address: ShopifyAddress = Field(default_factory=ShopifyAddress)
    billing_address: ShopifyAddress = Field(default_factory=ShopifyAddress)

    @field_validator("line_items", mode="before")
    @classmethod
    def null_items_as_default(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [{} if item is None else item for item in v]
        return v
