"""Domain models describing gateway status as reported by the switch."""
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class GatewayStatus(int, Enum):
    """Operational state of an outbound gateway."""

    DOWN = 0
    UP = 1

    @classmethod
    def from_text(cls, value: str | None) -> "GatewayStatus":
        """Map a reported status token; anything except ``up`` means down."""
        if value is not None and value.lower() == "up":
            return cls.UP
        return cls.DOWN


class GatewayRecord(BaseModel):
    """Snapshot of one gateway taken from a single status poll."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Gateway name, unique within a poll")
    proxy: str = Field("", description="Upstream proxy address")
    ping_timestamp: int = Field(0, ge=0, description="Switch-local time of the last ping")
    ping_time: float = Field(0.0, description="Round-trip time of the last ping")
    status: GatewayStatus = GatewayStatus.DOWN
    uptime_usec: int = Field(0, ge=0, description="Time since the gateway came up, in microseconds")
    calls_in: int = Field(0, ge=0)
    calls_out: int = Field(0, ge=0)
    failed_calls_in: int = Field(0, ge=0)
    failed_calls_out: int = Field(0, ge=0)

    @property
    def is_up(self) -> bool:
        return self.status is GatewayStatus.UP


class GatewayStatusReport(BaseModel):
    """All gateways returned by one poll, in reply order."""

    model_config = ConfigDict(frozen=True)

    gateways: tuple[GatewayRecord, ...] = ()

    @property
    def count(self) -> int:
        return len(self.gateways)

    @property
    def names(self) -> list[str]:
        return [gateway.name for gateway in self.gateways]
