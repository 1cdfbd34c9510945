"""FormLogic HTTP API."""
