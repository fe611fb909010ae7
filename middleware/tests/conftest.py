"""
Pytest Configuration and Fixtures

Provides common fixtures and test utilities for middleware tests.
"""

import copy
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import httpx
import pytest
from fastapi.testclient import TestClient

from erp_bridge.main import app
from erp_bridge.models.shopify_order import ShopifyOrder
from erp_bridge.routes.webhook import get_audit_logger, get_pipeline
from erp_bridge.services.audit_log import AuditLogEntry, AuditLogger, AuditSink
from erp_bridge.services.pipeline import OrderPipeline

ERP_TEST_ENDPOINT = "https://erp.test/CreateOrderService.svc"
SOAP_TEST_ACTION = "http://tempuri.org/CreateOrder"
FIXED_TIMESTAMP = "2024-01-15T10:30:00Z"

# An int is answered as that HTTP status; an exception instance is raised
ERPResponse = Union[int, Exception]


class RecordingAuditSink(AuditSink):
    """Keeps audit entries in memory"""

    def __init__(self):
        self.entries: List[AuditLogEntry] = []

    async def write(self, entry: AuditLogEntry) -> None:
        self.entries.append(entry)

    def of_type(self, entry_type: str) -> List[AuditLogEntry]:
        return [entry for entry in self.entries if entry.type == entry_type]


class FakeERP:
    """
    Scripted ERP endpoint backed by httpx.MockTransport.

    Answers each call with the next scripted response; the last one repeats.
    """

    def __init__(self, responses: Sequence[ERPResponse], body: str = "<ok/>"):
        self.responses = list(responses)
        self.body = body
        self.requests: List[httpx.Request] = []
        self._client: Optional[httpx.AsyncClient] = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests), len(self.responses)) - 1
        response = self.responses[index]
        if isinstance(response, Exception):
            raise response
        return httpx.Response(
            response,
            text=self.body if 200 <= response < 300 else f"error {response}",
            headers={"Content-Type": "text/xml; charset=utf-8"},
        )

    def client(self) -> httpx.AsyncClient:
        """HTTP client routed to this fake; one per fake, closed by aclose()"""
        if self._client is None:
            self._client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()

    @property
    def call_count(self) -> int:
        return len(self.requests)


class SleepRecorder:
    """Stand-in for asyncio.sleep that records requested delays"""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def shopify_order_payload() -> Dict[str, Any]:
    """Shopify orders/create webhook payload"""
    return {
        "id": 12345,
        "order_number": 1001,
        "email": "jane@example.com",
        "created_at": "2024-01-15T10:29:58-05:00",
        "updated_at": "2024-01-15T10:29:59-05:00",
        "total_price": "150.00",
        "subtotal_price": "130.00",
        "total_tax": "20.00",
        "currency": "USD",
        "financial_status": "paid",
        "fulfillment_status": None,
        "customer": {
            "id": 987,
            "email": "jane@example.com",
            "first_name": "Jane",
            "last_name": "Doe",
            "phone": "+15551234567",
        },
        "line_items": [
            {
                "id": 1,
                "product_id": 11,
                "variant_id": 111,
                "title": "Test Product",
                "name": "Test Product - Blue",
                "quantity": 2,
                "price": "65.00",
                "sku": "TEST-SKU-001",
                "variant_title": "Blue",
                "fulfillment_service": "manual",
            }
        ],
        "shipping_address": {
            "first_name": "Jane",
            "last_name": "Doe",
            "company": "Acme",
            "address1": "1 Main St",
            "address2": "Suite 2",
            "city": "Springfield",
            "province": "Illinois",
            "country": "United States",
            "zip": "62701",
            "phone": "+15551234567",
            "province_code": "IL",
            "country_code": "US",
        },
        "billing_address": {
            "first_name": "John",
            "last_name": "Doe",
            "company": "",
            "address1": "9 Elm St",
            "address2": "",
            "city": "Chicago",
            "province": "Illinois",
            "country": "United States",
            "zip": "60601",
            "phone": "",
            "province_code": "IL",
            "country_code": "US",
        },
    }


@pytest.fixture
def shopify_order(shopify_order_payload) -> ShopifyOrder:
    return ShopifyOrder.model_validate(shopify_order_payload)


@pytest.fixture
def make_shopify_order(shopify_order_payload) -> Callable[..., ShopifyOrder]:
    """Factory building an order from the default payload plus overrides"""

    def _make(**overrides: Any) -> ShopifyOrder:
        payload = copy.deepcopy(shopify_order_payload)
        payload.update(overrides)
        return ShopifyOrder.model_validate(payload)

    return _make


@pytest.fixture
def audit_sink() -> RecordingAuditSink:
    return RecordingAuditSink()


@pytest.fixture
def audit_logger(audit_sink) -> AuditLogger:
    return AuditLogger(audit_sink)


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
async def fake_erp_factory():
    """Factory for scripted ERP endpoints; their HTTP clients are closed afterwards"""
    fakes: List[FakeERP] = []

    def _factory(*responses: ERPResponse, body: str = "<ok/>") -> FakeERP:
        fake = FakeERP(responses or (200,), body=body)
        fakes.append(fake)
        return fake

    yield _factory

    for fake in fakes:
        await fake.aclose()


@pytest.fixture
def make_pipeline(audit_logger, sleep_recorder) -> Callable[[FakeERP], OrderPipeline]:
    """Factory for a pipeline wired to a fake ERP, recording sleeps and audit entries"""

    def _make(fake_erp: FakeERP, max_attempts: int = 3, retry_delay: float = 2.0) -> OrderPipeline:
        return OrderPipeline(
            audit_logger,
            http_client=fake_erp.client(),
            endpoint=ERP_TEST_ENDPOINT,
            soap_action=SOAP_TEST_ACTION,
            max_attempts=max_attempts,
            retry_delay=retry_delay,
            sleep=sleep_recorder,
        )

    return _make


@pytest.fixture
def test_client_factory(audit_logger, make_pipeline):
    """FastAPI test client whose webhook uses a fake ERP"""
    def _factory(fake_erp: FakeERP) -> TestClient:
        pipeline = make_pipeline(fake_erp)
        app.dependency_overrides[get_pipeline] = lambda: pipeline
        app.dependency_overrides[get_audit_logger] = lambda: audit_logger
        return TestClient(app)

    yield _factory

    app.dependency_overrides.clear()


@pytest.fixture
def test_client():
    """FastAPI test client"""
    return TestClient(app)
