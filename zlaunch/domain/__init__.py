"""Domain models: entries, indexes, modes, configuration and errors."""
