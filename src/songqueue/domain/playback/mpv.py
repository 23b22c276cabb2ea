"""
MPV audio backend using JSON IPC.

One long-lived ``mpv --idle`` process is controlled over its Unix socket.
mpv interleaves asynchronous events with command replies on the same
connection, so every command carries a request_id and replies are matched
back to the waiting coroutine.
"""

import asyncio
import json
import os
import subprocess
import tempfile
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from songqueue.core.config import PlayerConfig

from .backend import BackendStatus
from .exceptions import BackendError, BackendReplyError, LoadFailure

# Seconds to wait for mpv to create its IPC socket
SOCKET_TIMEOUT = 5.0

# Seconds to wait for a single IPC reply
COMMAND_TIMEOUT = 2.0

# Seconds after loadfile before idle-active is trusted as a load failure
LOAD_GRACE = 1.0

# Reply error for a property that has no value yet (e.g. duration before load)
PROPERTY_UNAVAILABLE = "property unavailable"


def check_mpv_available() -> bool:
    """Check if MPV is available on the system."""
    try:
        result = subprocess.run(
            ["mpv", "--version"], capture_output=True, text=True, timeout=5
        )
        return result.returncode == 0
    except (subprocess.SubprocessError, FileNotFoundError, OSError):
        return False


def _default_socket_path() -> str:
    return str(Path(tempfile.gettempdir()) / f"songqueue-mpv-{os.getpid()}")


class MpvBackend:
    """AudioBackend that plays streams through a single mpv process."""

    def __init__(self, config: Optional[PlayerConfig] = None):
        self.config = config or PlayerConfig()
        self.socket_path = self.config.mpv_socket_path or _default_socket_path()
        self._process: Optional[asyncio.subprocess.Process] = None
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._read_task: Optional[asyncio.Task] = None
        self._pending: dict[int, asyncio.Future] = {}
        self._next_request_id = 0
        self._write_lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    async def start(self) -> None:
        """Launch mpv and connect to its IPC socket.

        Raises:
            BackendError: If mpv cannot be started or never opens its socket
        """
        if self.is_running:
            return

        logger.info(f"Starting MPV player with socket: {self.socket_path}")
        if os.path.exists(self.socket_path):
            logger.debug(f"Removing existing socket: {self.socket_path}")
            os.unlink(self.socket_path)

        cmd = [
            "mpv",
            "--idle=yes",
            "--no-video",
            "--no-terminal",
            f"--input-ipc-server={self.socket_path}",
            f"--volume={self.config.volume}",
            "--keep-open=yes",
            "--load-scripts=no",
        ]
        try:
            self._process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            raise BackendError(f"Failed to start MPV: {e}") from e

        loop = asyncio.get_running_loop()
        deadline = loop.time() + SOCKET_TIMEOUT
        while not os.path.exists(self.socket_path):
            if loop.time() > deadline or not self.is_running:
                await self.shutdown()
                raise BackendError(f"MPV socket creation timeout after {SOCKET_TIMEOUT}s")
            await asyncio.sleep(0.1)

        try:
            self._reader, self._writer = await asyncio.open_unix_connection(
                self.socket_path
            )
        except OSError as e:
            await self.shutdown()
            raise BackendError(f"MPV socket connection failed: {e}") from e

        self._read_task = asyncio.create_task(self._read_replies())
        logger.info("MPV started successfully")

    async def shutdown(self) -> None:
        """Stop the mpv process and clean up the socket."""
        if self._read_task is not None:
            self._read_task.cancel()
            try:
                await self._read_task
            except asyncio.CancelledError:
                pass
            self._read_task = None

        if self._writer is not None:
            self._writer.close()
            self._writer = None
            self._reader = None

        if self._process is not None and self._process.returncode is None:
            try:
                self._process.kill()
                await asyncio.wait_for(self._process.wait(), timeout=2.0)
            except (ProcessLookupError, asyncio.TimeoutError):
                pass  # Process already terminated or couldn't be killed
        self._process = None

        if os.path.exists(self.socket_path):
            try:
                os.unlink(self.socket_path)
            except OSError:
                pass

    async def _read_replies(self) -> None:
        assert self._reader is not None
        while True:
            line = await self._reader.readline()
            if not line:
                break
            try:
                message = json.loads(line)
            except json.JSONDecodeError:
                continue
            request_id = message.get("request_id")
            future = self._pending.pop(request_id, None) if request_id is not None else None
            if future is not None and not future.done():
                future.set_result(message)

        for future in self._pending.values():
            if not future.done():
                future.set_exception(BackendError("MPV connection closed"))
        self._pending.clear()

    async def command(self, *args: Any) -> Any:
        """Send one IPC command and return its ``data`` member.

        Raises:
            BackendError: If mpv is not connected, times out or reports an error
        """
        if self._writer is None:
            raise BackendError("MPV is not running")

        self._next_request_id += 1
        request_id = self._next_request_id
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future

        payload = json.dumps({"command": list(args), "request_id": request_id}) + "\n"
        try:
            async with self._write_lock:
                self._writer.write(payload.encode("utf-8"))
                await self._writer.drain()
            reply = await asyncio.wait_for(future, timeout=COMMAND_TIMEOUT)
        except (OSError, asyncio.TimeoutError) as e:
            raise BackendError(f"MPV command {args[0]} failed: {e!r}") from e
        finally:
            self._pending.pop(request_id, None)

        if reply.get("error") != "success":
            raise BackendReplyError(args[0], str(reply.get("error")))
        return reply.get("data")

    async def get_property(self, name: str) -> Any:
        """Get a property value, or None if mpv has no value for it yet.

        Raises:
            BackendError: If mpv is unreachable or rejects the request
        """
        try:
            return await self.command("get_property", name)
        except BackendReplyError as e:
            if e.error == PROPERTY_UNAVAILABLE:
                return None
            raise

    async def set_property(self, name: str, value: Any) -> None:
        await self.command("set_property", name, value)

    async def open(self, url: str) -> "MpvHandle":
        """Load url, wait until mpv knows its duration, and return a handle.

        Raises:
            LoadFailure: If mpv rejects the file or it never starts
        """
        if not self.is_running:
            try:
                await self.start()
            except BackendError as e:
                raise LoadFailure(str(e)) from e

        try:
            await self.set_property("pause", True)
            await self.command("loadfile", url, "replace")
        except BackendError as e:
            raise LoadFailure(f"MPV rejected stream: {e}") from e

        loop = asyncio.get_running_loop()
        started = loop.time()
        deadline = started + self.config.load_timeout_seconds
        while loop.time() < deadline:
            await asyncio.sleep(0.1)
            try:
                duration = await self.get_property("duration")
                if duration:
                    logger.debug(f"MPV loaded stream, duration={duration:.1f}s")
                    return MpvHandle(self)
                # mpv falls back to idle when the file cannot be opened; give
                # it a moment to leave idle first
                idle = (
                    loop.time() - started > LOAD_GRACE
                    and await self.get_property("idle-active") is True
                )
            except BackendError as e:
                raise LoadFailure(f"MPV stopped responding during load: {e}") from e
            if idle:
                raise LoadFailure(f"MPV could not open stream: {url}")

        raise LoadFailure(
            f"Stream did not start within {self.config.load_timeout_seconds}s"
        )


class MpvHandle:
    """Handle for the file currently loaded in an MpvBackend."""

    def __init__(self, backend: MpvBackend):
        self._backend = backend
        self._released = False

    def _check(self) -> None:
        if self._released:
            raise BackendError("Handle already unloaded")

    async def play(self) -> None:
        self._check()
        await self._backend.set_property("pause", False)

    async def pause(self) -> None:
        self._check()
        await self._backend.set_property("pause", True)

    async def seek(self, position_ms: int) -> None:
        self._check()
        await self._backend.command("seek", position_ms / 1000.0, "absolute")

    async def status(self) -> BackendStatus:
        self._check()
        position = await self._backend.get_property("time-pos") or 0.0
        duration = await self._backend.get_property("duration") or 0.0
        paused = await self._backend.get_property("pause")
        eof = await self._backend.get_property("eof-reached")

        # With --keep-open mpv parks on the last frame and sets eof-reached;
        # a user pause near the end leaves it False
        reached_end = eof is True
        return BackendStatus(
            is_playing=paused is False,
            position_ms=int(position * 1000),
            duration_ms=int(duration * 1000),
            reached_end=reached_end,
        )

    async def unload(self) -> None:
        if self._released:
            return
        self._released = True
        await self._backend.command("stop")
