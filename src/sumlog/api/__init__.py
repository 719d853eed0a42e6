"""HTTP API for SumLog."""
