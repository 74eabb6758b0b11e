"""zlaunch - background launcher daemon."""
