"""Domain Events (e.g., API call lifecycle events)."""
