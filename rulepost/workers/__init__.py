"""Long-running workers."""
