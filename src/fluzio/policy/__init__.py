"""Policy loading and config invariant checks."""
