"""HTTP server for the Advancia Pay Ledger."""
