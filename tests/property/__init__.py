"""Property-based tests (hypothesis) over ledger invariants."""
