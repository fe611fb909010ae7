"""
Delivery Result Models

Result of a single ERP call (AttemptResult) and the terminal result of a
whole delivery (DeliveryOutcome).
"""

from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class DeliveryState(str, Enum):
    """States of the delivery state machine"""

    PENDING = "pending"
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


class AttemptOk(BaseModel):
    """ERP answered with a 2xx status"""

    model_config = ConfigDict(frozen=True)

    kind: Literal["ok"] = "ok"
    status_code: int
    body: str = ""


class TransportError(BaseModel):
    """No response received (connection refused, timeout, DNS failure)"""

    model_config = ConfigDict(frozen=True)

    kind: Literal["transport_error"] = "transport_error"
    cause: str

    @property
    def status_code(self) -> int:
        return 0


class HTTPError(BaseModel):
    """ERP answered with a status outside 200-299"""

    model_config = ConfigDict(frozen=True)

    kind: Literal["http_error"] = "http_error"
    status_code: int
    body: str = ""


AttemptResult = Union[AttemptOk, TransportError, HTTPError]


def describe_failure(result: Union[TransportError, HTTPError]) -> str:
    """Human readable error text for a failed attempt"""
    if isinstance(result, TransportError):
        return result.cause
    return f"ERP returned status {result.status_code}: {result.body}"


class Delivered(BaseModel):
    """Order accepted by the ERP"""

    model_config = ConfigDict(frozen=True)

    status: Literal["delivered"] = "delivered"
    status_code: int
    response_body: str = ""
    attempts: int = Field(description="Attempts made, including the successful one")

    @property
    def succeeded(self) -> bool:
        return True


class DeliveryFailed(BaseModel):
    """Retry budget exhausted without a 2xx response"""

    model_config = ConfigDict(frozen=True)

    status: Literal["failed"] = "failed"
    last_error: str
    attempts_made: int
    last_status_code: Optional[int] = Field(
        None, description="Status of the last attempt, None after a transport error"
    )

    @property
    def succeeded(self) -> bool:
        return False


DeliveryOutcome = Union[Delivered, DeliveryFailed]
