"""Pooled-entry raffle: entrant registry, refunds and verifiable settlement."""
