"""I/O layer: document stores, record loading, match application and exports."""
