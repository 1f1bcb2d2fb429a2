"""safaridriver process control.

The driver is launched detached so it outlives the CLI invocation; its
lifetime is tracked through the persisted pid, not through a Popen handle.
"""

import logging
import shutil
import subprocess
from typing import Optional

import psutil

from .exceptions import DriverLaunchError

logger = logging.getLogger(__name__)

# Tolerance between psutil create_time() and wall-clock session timestamps
CREATE_TIME_SLACK = 2.0


def launch_driver(driver_path: str, port: int) -> int:
    """Start ``<driver_path> -p <port>`` detached from the terminal.

    Args:
        driver_path: Executable name (looked up on PATH) or path
        port: Port for the driver to listen on

    Returns:
        Process id of the spawned driver

    Raises:
        DriverLaunchError: Binary not found or the process could not be created
    """
    executable = shutil.which(driver_path)
    if executable is None:
        raise DriverLaunchError(
            f"Driver executable not found: {driver_path}",
            details={"recovery": "Install Safari and run `safaridriver --enable` once"},
        )

    try:
        process = subprocess.Popen(
            [executable, "-p", str(port)],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as e:
        raise DriverLaunchError(f"Failed to start {executable}: {e}") from e

    if not process.pid:
        raise DriverLaunchError(f"Failed to start {executable}: no process id")

    logger.info(f"Launched {executable} on port {port} (pid={process.pid})")
    return process.pid


def is_process_alive(pid: int, created_before: Optional[float] = None) -> bool:
    """Return True if ``pid`` names a running (non-zombie) process. Never raises.

    Args:
        pid: Process id to check
        created_before: Epoch seconds; a process created after this moment
            has reused the pid and counts as dead
    """
    try:
        process = psutil.Process(pid)
        if process.status() == psutil.STATUS_ZOMBIE:
            return False
        if created_before is not None and process.create_time() > created_before + CREATE_TIME_SLACK:
            logger.debug(f"Pid {pid} was reused by a newer process")
            return False
        return True
    except (psutil.Error, ValueError):
        return False


def terminate_process(pid: int, timeout: float = 3.0) -> bool:
    """Send SIGTERM to ``pid``, escalating to SIGKILL after ``timeout``.

    Returns:
        True if a signal was delivered, False if the process was already gone
    """
    try:
        process = psutil.Process(pid)
        process.terminate()
        try:
            process.wait(timeout=timeout)
        except psutil.TimeoutExpired:
            logger.warning(f"Process {pid} ignored SIGTERM, killing")
            process.kill()
            process.wait(timeout=timeout)
        return True
    except psutil.NoSuchProcess:
        return False
    except psutil.Error as e:
        logger.warning(f"Could not terminate process {pid}: {e}")
        return False
