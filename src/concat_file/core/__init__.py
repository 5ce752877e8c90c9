"""Core types, exceptions and content sources."""
