"""Adapters for the host environment: sockets, compositors, files."""
