"""Entry point for running the daemon as a module.

Usage:
    python -m zlaunch.adapters.daemon [--socket PATH] [--config PATH] [--log-level LEVEL]
"""

from zlaunch.adapters.daemon.runtime import main

if __name__ == "__main__":
    main()
