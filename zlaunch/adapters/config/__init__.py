"""Configuration loading adapters."""
