"""Wallet connection and network assurance."""

from scrollgen.connection.manager import ConnectionManager, ContractHandle

__all__ = ["ConnectionManager", "ContractHandle"]
