"""Database access for Plinth."""
