"""Unit tests for the ledger, store, CLI and ambient stack."""
