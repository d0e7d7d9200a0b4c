"""Database models for Plinth."""
