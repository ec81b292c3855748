"""Database infrastructure: declarative base, engine, sequences."""
