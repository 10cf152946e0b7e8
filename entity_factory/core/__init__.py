"""Ambient infrastructure: configuration, logging, database and errors."""
