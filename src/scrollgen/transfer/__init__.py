"""Single-transfer lifecycle tracking."""

from scrollgen.transfer.lifecycle import TransferLifecycle

__all__ = ["TransferLifecycle"]
