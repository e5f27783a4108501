"""On-chain lookups, transaction encoding and the discovery building blocks."""
