"""The zlaunch daemon process and its control socket.

Architecture:
- protocol.py: newline-delimited JSON wire format
- handler.py: command dispatch onto session, registry, themes and bridge
- server.py: Unix socket accept loop (the control endpoint)
- runtime.py: LauncherDaemon, the context object owning every component
- client.py: client used by the CLI
- lifecycle.py: background process management (start/stop/status)
"""
