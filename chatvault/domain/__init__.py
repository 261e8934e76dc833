"""Domain layer: chat models and error taxonomy."""
