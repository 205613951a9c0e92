"""Account lifecycle and access control services."""
