"""Core translation layer."""
