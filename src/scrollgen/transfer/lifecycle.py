"""Lifecycle of a single token transfer.

Phases run strictly in order: validate -> submit -> confirm. Every outcome,
including bad input, ends in a terminal TransferStatus instead of an
exception, so the caller can render it inline. Once a transfer reaches
Submitted it is on the network and cannot be cancelled.
"""

import logging
from typing import TYPE_CHECKING, Callable, Optional

from web3 import Web3

from scrollgen.contracts.network import NetworkDescriptor
from scrollgen.contracts.transfers import (
    Confirmed,
    Failed,
    Idle,
    Submitted,
    TransferRequest,
    TransferStatus,
    Validating,
)
from scrollgen.errors import (
    ContractExecutionError,
    InvalidAddressError,
    NoContractError,
    ScrollGenError,
    TransferInProgressError,
)
from scrollgen.token.units import DEFAULT_DECIMALS, parse_units

if TYPE_CHECKING:
    from scrollgen.connection.manager import ContractHandle

logger = logging.getLogger(__name__)

StatusListener = Callable[[TransferStatus], None]


class TransferLifecycle:
    """Validates and executes one transfer at a time.

    Also holds the recipient/amount form values: they are cleared when a
    transfer confirms, and `finished` is False while a submission runs.
    """

    def __init__(
        self,
        decimals: int = DEFAULT_DECIMALS,
        confirmation_timeout: Optional[float] = None,
        poll_interval: float = 2.0,
        network: Optional[NetworkDescriptor] = None,
    ):
        self.decimals = decimals
        self.confirmation_timeout = confirmation_timeout
        self.poll_interval = poll_interval
        self.network = network

        self.status: TransferStatus = Idle()
        self.recipient = ""
        self.amount = ""
        self.finished = True
        self._listeners: list[StatusListener] = []

    @property
    def busy(self) -> bool:
        return not self.finished

    def set_input(self, recipient: str, amount: str) -> None:
        self.recipient = recipient
        self.amount = amount

    def on_status(self, listener: StatusListener) -> Callable[[], None]:
        """Subscribe to status transitions. Returns a disposer."""
        self._listeners.append(listener)

        def dispose() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return dispose

    def reset(self) -> None:
        if self.busy:
            raise TransferInProgressError()
        self._transition(Idle())

    def validate(self, request: TransferRequest, handle: Optional["ContractHandle"]) -> int:
        """Check the request locally and return the amount in base units.

        No network access happens here.

        Raises:
            NoContractError: If the handle is missing or stale
            InvalidAddressError: If the recipient is not an address
            InvalidAmountError: If the amount is not a positive decimal
                representable with the token's precision
        """
        if handle is None or handle.is_stale:
            raise NoContractError()
        if not request.recipient or not Web3.is_address(request.recipient):
            raise InvalidAddressError()
        return parse_units(request.amount, self.decimals)

    async def submit(
        self,
        request: Optional[TransferRequest] = None,
        handle: Optional["ContractHandle"] = None,
    ) -> TransferStatus:
        """Run one transfer to a terminal status.

        Args:
            request: Recipient and amount (defaults to the current input)
            handle: ContractHandle from the connection manager

        Returns:
            Confirmed or Failed

        Raises:
            TransferInProgressError: If a previous submission is still running
        """
        if self.busy:
            raise TransferInProgressError()

        if request is None:
            request = TransferRequest(recipient=self.recipient, amount=self.amount)
        else:
            self.set_input(request.recipient, request.amount)

        self.finished = False
        tx_ref = None
        try:
            self._transition(Validating())
            try:
                amount = self.validate(request, handle)
            except ScrollGenError as e:
                return self._fail(e)

            pending = await handle.transfer(request.recipient, amount)
            tx_ref = pending.tx_hash
            self._transition(Submitted(tx_ref=tx_ref, explorer_url=self._explorer_url(tx_ref)))

            receipt = await pending.wait(
                timeout=self.confirmation_timeout,
                poll_interval=self.poll_interval,
            )

            block = receipt.get("blockNumber")
            self._transition(
                Confirmed(
                    tx_ref=tx_ref,
                    block_number=int(block, 16) if isinstance(block, str) else block,
                    explorer_url=self._explorer_url(tx_ref),
                )
            )
            self.recipient = ""
            self.amount = ""
            return self.status

        except ScrollGenError as e:
            return self._fail(e, tx_ref)
        except Exception as e:
            logger.error(f"Transfer error: {e}", exc_info=True)
            return self._fail(ContractExecutionError(str(e) or None, tx_ref), tx_ref)
        finally:
            self.finished = True

    def _fail(self, error: ScrollGenError, tx_ref: Optional[str] = None) -> TransferStatus:
        self._transition(Failed(error=error, tx_ref=tx_ref))
        return self.status

    def _explorer_url(self, tx_ref: str) -> Optional[str]:
        return self.network.tx_url(tx_ref) if self.network else None

    def _transition(self, status: TransferStatus) -> None:
        self.status = status
        if isinstance(status, Failed):
            logger.warning(f"Transfer failed: {status.reason}")
        elif isinstance(status, (Submitted, Confirmed)):
            logger.info(f"Transfer {status.phase.value}: {status.tx_ref}")
        else:
            logger.debug(f"Transfer {status.phase.value}")

        for listener in list(self._listeners):
            try:
                listener(status)
            except Exception as e:
                logger.error(f"Error in status listener: {e}", exc_info=True)
