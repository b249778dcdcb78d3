"""Browser fingerprint collection and lookup service."""
