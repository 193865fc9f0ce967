"""Service layer for the reader application."""
