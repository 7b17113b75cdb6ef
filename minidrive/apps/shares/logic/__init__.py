"""Share link operations: creation, consumption and cleanup."""
