"""NHS chapter service-hours tracking.

Proof verification, hours policy aggregation, and the spreadsheet-backed
member ledger behind the chapter's hours submission flow and leaderboard.
"""

__version__ = "0.1.0"
