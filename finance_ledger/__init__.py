"""Console entrypoint for the finance ledger."""
