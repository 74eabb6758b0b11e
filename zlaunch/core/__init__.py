"""Core launcher logic: ranking, registry, session and query resolution."""
