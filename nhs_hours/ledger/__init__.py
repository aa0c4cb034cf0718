"""Member Ledger Gateway: read member rows and send additive hour updates."""

from .client import SheetsLedgerClient
from .repository import MemberLedgerRepository
from .store import DryRunLedgerStore, InMemoryLedgerStore, LedgerStore

__all__ = ["DryRunLedgerStore", "InMemoryLedgerStore", "LedgerStore", "MemberLedgerRepository", "SheetsLedgerClient"]
