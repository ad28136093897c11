"""
Pydantic schemas for the Query Gateway.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, model_validator


class OutputFormat(str, Enum):
    """Response shapes understood by the formatter."""
    JSON = "json"
    CSV = "csv"


class Instrument(BaseModel):
    """A tradable unit: the native currency, or an issued currency."""

    model_config = ConfigDict(frozen=True)

    currency: str = Field(..., description="Currency code")
    issuer: Optional[str] = Field(None, description="Issuing account, absent for the native unit")

    def to_params(self) -> Dict[str, str]:
        """Render as the wire object used by the ledger query service."""
        if self.issuer:
            return {"currency": self.currency, "issuer": self.issuer}
        return {"currency": self.currency}


class InstrumentPair(BaseModel):
    """A base/counter combination defining one market."""

    model_config = ConfigDict(frozen=True)

    base: Instrument
    counter: Instrument


class TimeWindow(BaseModel):
    """Half-open UTC interval [start, end)."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def check_order(self) -> "TimeWindow":
        if self.start >= self.end:
            raise ValueError("window start must precede window end")
        return self


class ParticipantRecord(BaseModel):
    """Accumulated trading activity of one account within a request."""

    account: str = Field(..., description="Account identity")
    volume: Union[int, float] = Field(0, description="Summed trade volume")
    count: int = Field(0, description="Number of trade legs seen")

    def credit(self, volume: float) -> None:
        self.volume += volume
        self.count += 1


class HealthResponse(BaseModel):
    """Model for health check response."""
    status: Literal["healthy", "unhealthy"] = Field(..., description="Service status")
    version: str = Field(..., description="Service version")
    cache_enabled: bool = Field(..., description="Whether the response cache is active")
    cache_healthy: bool = Field(False, description="Whether the cache store answers a ping")
    routes: List[str] = Field(default_factory=list, description="Registered route keys")


class ErrorResponse(BaseModel):
    """Model for error responses."""
    error: Any = Field(..., description="Error message")
