"""Flask REST layer over the ledger services."""
