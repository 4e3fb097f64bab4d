"""
Ledgers on both sides of the bridge.

- ProcessingLedger: destination state machine (root adoption, crediting)
- SourceLedger: in-process source chain simulator and event feed
"""
from .processing_ledger import ProcessingLedger
from .source_ledger import DepositRecord, SourceLedger

__all__ = [
    "DepositRecord",
    "ProcessingLedger",
    "SourceLedger",
]
