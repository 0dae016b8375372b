"""Transfer request and status contracts.

TransferStatus is a closed sum type: each variant carries only the payload
that phase has, so a status can never be "pending and failed" at once.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field

from scrollgen.errors import ScrollGenError


class TransferPhase(str, Enum):
    """Phase tag of a TransferStatus."""

    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTED = "submitted"  # Broadcast, waiting for confirmation
    CONFIRMED = "confirmed"
    FAILED = "failed"


class TransferRequest(BaseModel):
    """User input for one transfer attempt. Values are kept as typed."""

    recipient: str = Field(default="", description="Recipient address")
    amount: str = Field(default="", description="Amount as a decimal string")


@dataclass(frozen=True)
class Idle:
    phase = TransferPhase.IDLE

    @property
    def message(self) -> str:
        return ""


@dataclass(frozen=True)
class Validating:
    phase = TransferPhase.VALIDATING

    @property
    def message(self) -> str:
        return "Checking transfer details..."


@dataclass(frozen=True)
class Submitted:
    """Transaction broadcast; cannot be withdrawn from here on."""

    tx_ref: str
    explorer_url: Optional[str] = None

    phase = TransferPhase.SUBMITTED

    @property
    def message(self) -> str:
        return "Transaction submitted, waiting for confirmation..."


@dataclass(frozen=True)
class Confirmed:
    tx_ref: str
    block_number: Optional[int] = None
    explorer_url: Optional[str] = None

    phase = TransferPhase.CONFIRMED

    @property
    def message(self) -> str:
        return "Transfer successful!"


@dataclass(frozen=True)
class Failed:
    """Terminal failure. `error` is one of the scrollgen.errors types."""

    error: ScrollGenError
    tx_ref: Optional[str] = None

    phase = TransferPhase.FAILED

    @property
    def reason(self) -> str:
        return self.error.message

    @property
    def message(self) -> str:
        return self.error.message


TransferStatus = Union[Idle, Validating, Submitted, Confirmed, Failed]
