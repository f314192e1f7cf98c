"""Ledger service, change polling and CLI around the reconciliation engine."""
