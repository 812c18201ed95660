"""Database persistence for decision records."""
