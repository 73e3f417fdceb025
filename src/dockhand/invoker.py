"""
Plugin process execution.

Runs a validated plugin as a child process and waits for it. The child
writes straight to our stdout/stderr file descriptors when we have real
ones; when a stream has been replaced by an in-memory object (test
runners, embedding), its output is copied through a pipe chunk by chunk.
stdout and stderr are always forwarded separately.
"""

import logging
import signal
import subprocess
import sys
import threading
from dataclasses import dataclass
from typing import IO, List, Mapping, Optional, Sequence

from dockhand.plugins.manifest import PluginDescriptor

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class InvocationResult:
    """Outcome of running a plugin."""

    exit_code: int


def exit_status(returncode: int) -> int:
    """Map a Popen return code to a process exit status (signals -> 128+N)."""
    if returncode < 0:
        return 128 - returncode
    return returncode


def _fileno(stream: Optional[IO]) -> Optional[int]:
    """File descriptor behind a stream, or None for in-memory streams."""
    if stream is None:
        return None
    try:
        return stream.fileno()
    except (AttributeError, OSError, ValueError):
        return None


def _flush(stream: Optional[IO]) -> None:
    if stream is None:
        return
    try:
        stream.flush()
    except (OSError, ValueError):
        pass


def _pump(source: IO[bytes], sink: IO) -> None:
    """Copy a child's pipe into one of our streams until EOF."""
    binary_sink = getattr(sink, "buffer", None)
    try:
        while True:
            chunk = source.read1(CHUNK_SIZE)
            if not chunk:
                break
            if binary_sink is not None:
                binary_sink.write(chunk)
                binary_sink.flush()
            else:
                sink.write(chunk.decode(errors="replace"))
                sink.flush()
    finally:
        source.close()


def _wait(process: subprocess.Popen) -> int:
    """Block until the child exits, forwarding interrupts to it."""
    while True:
        try:
            return process.wait()
        except KeyboardInterrupt:
            logger.debug(f"Forwarding interrupt to plugin process {process.pid}")
            process.send_signal(signal.SIGINT)


def invoke_plugin(
    descriptor: PluginDescriptor,
    path: Sequence[str] = (),
    args: Sequence[str] = (),
    env: Optional[Mapping[str, str]] = None,
) -> InvocationResult:
    """
    Run a plugin and wait for it to finish.

    Args:
        descriptor: Validated plugin to run
        path: Subcommand path, passed first
        args: Remaining arguments, passed verbatim after the path
        env: Child environment (defaults to ours)

    Returns:
        InvocationResult carrying the child's exit status
    """
    argv = [str(descriptor.path), *path, *args]
    stdout, stderr = sys.stdout, sys.stderr

    _flush(stdout)
    _flush(stderr)

    stdin_fd = _fileno(sys.stdin)
    stdout_fd = _fileno(stdout)
    stderr_fd = _fileno(stderr)

    logger.debug(f"Running plugin {descriptor.name}: {argv}")
    process = subprocess.Popen(
        argv,
        stdin=stdin_fd if stdin_fd is not None else subprocess.DEVNULL,
        stdout=stdout_fd if stdout_fd is not None else subprocess.PIPE,
        stderr=stderr_fd if stderr_fd is not None else subprocess.PIPE,
        env=dict(env) if env is not None else None,
    )

    pumps: List[threading.Thread] = []
    for pipe, sink, name in (
        (process.stdout, stdout, "stdout"),
        (process.stderr, stderr, "stderr"),
    ):
        if pipe is not None:
            pump = threading.Thread(
                target=_pump,
                args=(pipe, sink),
                name=f"plugin-{descriptor.name}-{name}",
                daemon=True,
            )
            pump.start()
            pumps.append(pump)

    try:
        returncode = _wait(process)
    finally:
        for pump in pumps:
            pump.join()

    exit_code = exit_status(returncode)
    logger.debug(f"Plugin {descriptor.name} exited with status {exit_code}")
    return InvocationResult(exit_code=exit_code)
