"""Index sources feeding the module registry."""
