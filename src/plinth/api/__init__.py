"""FastAPI application for Plinth."""
