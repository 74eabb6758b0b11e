"""Daemon process management (start/stop/status).

Spawns the daemon in the background with a PID file, waits for it to answer
health, and stops it with quit, falling back to SIGTERM and then SIGKILL.
"""

import contextlib
import logging
import os
import signal
import subprocess
import sys
import time
from pathlib import Path

from zlaunch.adapters.daemon.client import (
    DaemonClient,
    DaemonError,
    get_daemon_pid,
    is_daemon_running,
    socket_accepts_connections,
)
from zlaunch.adapters.daemon.timeouts import DaemonTimeouts
from zlaunch.shared.config_io import get_log_path, get_pid_path, get_socket_path

logger = logging.getLogger(__name__)


class DaemonStartError(RuntimeError):
    """Raised when a spawned daemon fails to come up.

    Attributes:
        exit_code: The daemon's exit status if it exited, else None.
    """

    def __init__(self, message: str, exit_code: int | None = None) -> None:
        super().__init__(message)
        self.exit_code = exit_code


class DaemonLifecycle:
    """Manages a background daemon process."""

    def __init__(
        self,
        socket_path: Path | None = None,
        pid_file: Path | None = None,
        log_file: Path | None = None,
        config_path: Path | None = None,
        log_level: str = "INFO",
    ):
        """Initialize lifecycle manager.

        Args:
            socket_path: Control socket (default: $XDG_RUNTIME_DIR/zlaunch.sock)
            pid_file: PID file (default: $XDG_RUNTIME_DIR/zlaunch.pid)
            log_file: Log file reported in errors (default: state dir)
            config_path: Config file passed to the daemon, if not the default
            log_level: Daemon log level
        """
        self.socket_path = socket_path or get_socket_path()
        self.pid_file = pid_file or get_pid_path()
        self.log_file = log_file or get_log_path()
        self.config_path = config_path
        self.log_level = log_level

    def is_running(self) -> bool:
        return is_daemon_running(self.socket_path)

    def get_pid(self) -> int | None:
        """PID from the PID file, or None if missing or unreadable."""
        try:
            return int(self.pid_file.read_text().strip())
        except (OSError, ValueError):
            return None

    def is_process_alive(self, pid: int) -> bool:
        """True if the process exists and is not a zombie."""
        try:
            self._reap_zombie(pid)
            os.kill(pid, 0)
            return True
        except OSError:
            return False

    def _reap_zombie(self, pid: int) -> None:
        with contextlib.suppress(ChildProcessError, OSError):
            os.waitpid(pid, os.WNOHANG)

    def _wait_for_death(self, pid: int, timeout_secs: float) -> bool:
        deadline = time.monotonic() + timeout_secs
        while time.monotonic() < deadline:
            if not self.is_process_alive(pid):
                return True
            time.sleep(DaemonTimeouts.DEATH_CHECK_INTERVAL)
        return not self.is_process_alive(pid)

    def _send_signal_and_wait(
        self, pid: int, sig: signal.Signals, timeout_secs: float
    ) -> bool | None:
        """Signal a process and wait for it to exit.

        Returns:
            True if it died, False if still alive, None if the signal failed.
        """
        try:
            os.kill(pid, sig)
        except OSError:
            return None
        return self._wait_for_death(pid, timeout_secs)

    def cleanup_stale_files(self) -> None:
        """Remove the PID file and socket left behind by a dead daemon."""
        pid = self.get_pid()
        if pid is not None and not self.is_process_alive(pid):
            logger.info(f"Removing stale PID file (process {pid} not found)")
            self.pid_file.unlink(missing_ok=True)
            pid = None

        if (
            pid is None
            and self.socket_path.exists()
            and not socket_accepts_connections(self.socket_path)
        ):
            logger.info(f"Removing stale socket: {self.socket_path}")
            self.socket_path.unlink(missing_ok=True)

    def build_command(self) -> list[str]:
        cmd = [
            sys.executable,
            "-m",
            "zlaunch.adapters.daemon",
            "--socket",
            str(self.socket_path),
            "--log-level",
            self.log_level,
        ]
        if self.config_path is not None:
            cmd.extend(["--config", str(self.config_path)])
        return cmd

    def _spawn_background_process(self, cmd: list[str]) -> subprocess.Popen:
        logger.info("Starting daemon in background...")
        return subprocess.Popen(
            cmd,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            stdin=subprocess.DEVNULL,
            start_new_session=True,
        )

    def _read_stderr_output(self, process: subprocess.Popen) -> str:
        if not process.stderr:
            return ""
        try:
            return process.stderr.read().decode("utf-8", errors="replace").strip()
        except OSError:
            logger.debug("Failed to read stderr from process")
            return ""

    def _write_pid_file(self, process: subprocess.Popen) -> None:
        """Record the spawned PID.

        Raises:
            DaemonStartError: If the file can't be written (the process is
                terminated so it isn't orphaned).
        """
        try:
            self.pid_file.parent.mkdir(parents=True, exist_ok=True)
            self.pid_file.write_text(str(process.pid))
            logger.info(f"Daemon started with PID {process.pid}")
        except OSError as e:
            process.terminate()
            raise DaemonStartError(f"Failed to write PID file: {e}") from e

    def _failed_exit(self, process: subprocess.Popen, exit_code: int) -> DaemonStartError:
        self.pid_file.unlink(missing_ok=True)
        stderr_output = self._read_stderr_output(process)
        error_msg = f"Daemon failed to start (exit code: {exit_code})"
        if stderr_output:
            error_msg += f"\nStderr: {stderr_output}"
        error_msg += f"\nCheck daemon logs at: {self.log_file}"
        return DaemonStartError(error_msg, exit_code=exit_code)

    def _wait_for_daemon_ready(self, process: subprocess.Popen) -> None:
        """Poll health until the daemon answers or gives up.

        Raises:
            DaemonStartError: If the process exits or never answers.
        """
        deadline = time.monotonic() + DaemonTimeouts.READY_WAIT
        started = time.monotonic()
        while time.monotonic() < deadline:
            exit_code = process.poll()
            if exit_code is not None:
                raise self._failed_exit(process, exit_code)
            if self.is_running():
                logger.info(f"Daemon is ready (took {time.monotonic() - started:.1f}s)")
                return
            time.sleep(DaemonTimeouts.READY_CHECK_INTERVAL)

        logger.warning(
            f"Daemon process {process.pid} not responding after "
            f"{DaemonTimeouts.READY_WAIT:.0f}s, terminating..."
        )
        if self._send_signal_and_wait(process.pid, signal.SIGTERM, 1.0) is False:
            self._send_signal_and_wait(process.pid, signal.SIGKILL, DaemonTimeouts.SIGKILL_WAIT)
        self.pid_file.unlink(missing_ok=True)
        raise DaemonStartError(
            "Daemon process started but did not answer health checks. "
            f"Check daemon logs at: {self.log_file}"
        )

    def start(self) -> bool:
        """Start the daemon in the background.

        Returns:
            True once the daemon answers health (also if it already did).

        Raises:
            DaemonStartError: If the daemon exits or never becomes ready.
        """
        if self.is_running():
            logger.info("Daemon already running")
            return True

        self.cleanup_stale_files()

        try:
            process = self._spawn_background_process(self.build_command())
        except OSError as e:
            raise DaemonStartError(f"Failed to start daemon: {e}") from e

        self._write_pid_file(process)
        try:
            self._wait_for_daemon_ready(process)
        finally:
            if process.stderr:
                process.stderr.close()
        return True

    def _stop_with_quit(self, pid: int) -> bool:
        try:
            DaemonClient(self.socket_path, timeout=DaemonTimeouts.HEALTH_CHECK).call("quit")
        except DaemonError as e:
            logger.debug(f"quit request failed: {e}")
            return False
        return self._wait_for_death(pid, DaemonTimeouts.QUIT_WAIT)

    def _stop_with_sigterm(self, pid: int, timeout: float) -> bool | None:
        logger.info(f"Sending SIGTERM to daemon (PID {pid})...")
        result = self._send_signal_and_wait(pid, signal.SIGTERM, timeout)
        if result is None and not self.is_process_alive(pid):
            return True
        return result

    def _stop_with_sigkill(self, pid: int) -> bool:
        logger.warning("Daemon did not stop gracefully, sending SIGKILL...")
        result = self._send_signal_and_wait(pid, signal.SIGKILL, DaemonTimeouts.SIGKILL_WAIT)
        if result is True or not self.is_process_alive(pid):
            logger.info("Daemon force-killed")
            return True
        logger.error("Daemon survived SIGKILL! Manual cleanup required.")
        return False

    def stop(self, timeout: float = DaemonTimeouts.SIGTERM_WAIT) -> bool:
        """Stop the daemon.

        Shutdown sequence:
        1. Send quit over the control socket and wait briefly
        2. SIGTERM and wait up to `timeout` seconds
        3. SIGKILL as a last resort
        4. Remove PID/socket files

        Returns:
            True if the daemon is no longer running.
        """
        pid = self.get_pid()
        if pid is None and self.is_running():
            pid = get_daemon_pid(self.socket_path)

        if pid is None or not self.is_process_alive(pid):
            logger.info("Daemon not running")
            self.cleanup_stale_files()
            return True

        logger.info(f"Stopping daemon (PID {pid})...")
        stopped = (
            self._stop_with_quit(pid)
            or self._stop_with_sigterm(pid, timeout) is True
            or self._stop_with_sigkill(pid)
        )
        if stopped:
            self.cleanup_stale_files()
        return stopped

    def restart(self) -> bool:
        logger.info("Restarting daemon...")
        self.stop()
        return self.start()

    def status(self) -> dict:
        """Process-level status, including stale file detection."""
        is_running = self.is_running()
        pid = self.get_pid()
        if is_running and pid is None:
            pid = get_daemon_pid(self.socket_path)

        status = {
            "running": is_running,
            "pid": pid,
            "socket": str(self.socket_path),
            "socket_exists": self.socket_path.exists(),
            "pid_file": str(self.pid_file),
            "pid_file_exists": self.pid_file.exists(),
            "log_file": str(self.log_file),
        }

        if is_running:
            status["status"] = "running"
            status["message"] = (
                f"Daemon is running (PID {pid})" if pid is not None
                else "Daemon is running (PID unknown)"
            )
        elif pid is not None and self.is_process_alive(pid):
            status["status"] = "unresponsive"
            status["message"] = f"Process {pid} exists but not responding"
        elif self.socket_path.exists() or self.pid_file.exists():
            status["status"] = "stale"
            status["message"] = "Stale files found (daemon not running)"
        else:
            status["status"] = "stopped"
            status["message"] = "Daemon is not running"
        return status

    def ensure_running(self) -> bool:
        """Start the daemon if needed; False if it could not be started."""
        if self.is_running():
            return True
        try:
            return self.start()
        except DaemonStartError as e:
            logger.error(f"Failed to start daemon: {e}")
            return False
