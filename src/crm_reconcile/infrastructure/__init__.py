"""Infrastructure layer: matching algorithms and shared types."""
