"""Contract and modification rules."""
