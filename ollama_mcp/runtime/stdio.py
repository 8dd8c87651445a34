"""Newline-delimited JSON-RPC transport over stdin/stdout.

One task reads a frame, dispatches it and writes the response before the next
frame is read. Each read is raced against the shutdown event: once shutdown is
requested no further frames are accepted, while a request that is already
being dispatched is allowed to finish and answer.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import stat
import sys
from enum import Enum
from typing import Any, BinaryIO, Callable, Dict, List, Optional, TextIO, Tuple

import httpx

from ollama_mcp.client import OllamaClient
from ollama_mcp.config import ServerConfig
from ollama_mcp.logging import setup_logging
from ollama_mcp.protocol.errors import ConfigError, ReadWriteError
from ollama_mcp.runtime.dispatcher import Dispatcher
from ollama_mcp.runtime.serialization import dumps_frame
from ollama_mcp.tools import build_registry

MAX_FRAME_BYTES = 16 * 1024 * 1024

logger = logging.getLogger(__name__)


class ServerState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    DISPATCHING = "dispatching"
    RESPONDING = "responding"
    DRAINING = "draining"
    TERMINATED = "terminated"


class LineWriter:
    def __init__(self, stream: TextIO):
        self._stream = stream

    def write_frame(self, payload: Dict[str, Any]) -> None:
        try:
            self._stream.write(dumps_frame(payload) + "\n")
            self._stream.flush()
        except (OSError, ValueError) as exc:
            raise ReadWriteError(f"writing response failed: {exc}") from exc


class StdioServer:
    def __init__(self, dispatcher: Dispatcher):
        self.dispatcher = dispatcher
        self.state = ServerState.IDLE
        self._shutdown = asyncio.Event()

    @property
    def draining(self) -> bool:
        return self._shutdown.is_set()

    def shutdown(self) -> None:
        self._shutdown.set()

    async def listen(self, reader: asyncio.StreamReader, writer: LineWriter) -> None:
        """Serve frames until EOF or shutdown. Transport failures raise ReadWriteError."""
        try:
            while True:
                self.state = ServerState.LISTENING
                frame = await self._next_frame(reader)
                if frame is None:
                    break
                if not frame.strip():
                    continue

                self.state = ServerState.DISPATCHING
                response = await self.dispatcher.handle_frame(frame)
                if response is not None:
                    self.state = ServerState.RESPONDING
                    writer.write_frame(response)

                if self.draining:
                    self.state = ServerState.DRAINING
                    break
        finally:
            self.state = ServerState.TERMINATED

    async def _next_frame(self, reader: asyncio.StreamReader) -> Optional[str]:
        """Return the next line, or None on EOF or shutdown."""
        if self.draining:
            return None

        read = asyncio.ensure_future(reader.readline())
        stop = asyncio.ensure_future(self._shutdown.wait())
        try:
            await asyncio.wait({read, stop}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (read, stop):
                if not task.done():
                    task.cancel()

        if stop.done() and not stop.cancelled():
            self.state = ServerState.DRAINING
            logger.info("shutdown requested, no longer reading requests")
            return None

        try:
            line = read.result()
        except (OSError, ValueError) as exc:
            raise ReadWriteError(f"reading request failed: {exc}") from exc

        if not line:
            logger.info("input closed")
            return None
        return line.decode("utf-8", errors="replace")


def _is_pipe_like(stream: TextIO) -> bool:
    mode = os.fstat(stream.fileno()).st_mode
    return stat.S_ISFIFO(mode) or stat.S_ISSOCK(mode) or stat.S_ISCHR(mode)


async def _feed_from_file(reader: asyncio.StreamReader, source: BinaryIO) -> None:
    loop = asyncio.get_running_loop()
    while True:
        try:
            chunk = await loop.run_in_executor(None, source.readline)
        except (OSError, ValueError) as exc:
            reader.set_exception(exc)
            return
        if not chunk:
            reader.feed_eof()
            return
        reader.feed_data(chunk)


async def _stdin_reader(stream: TextIO) -> Tuple[asyncio.StreamReader, Optional[asyncio.Future]]:
    """Wrap stdin in a StreamReader.

    Pipes, sockets and terminals are read through the event loop. A regular
    file (``stdio < requests.jsonl``) cannot be, so it is fed line by line from
    a worker thread; the returned feeder task is None for the pipe case.
    """
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=MAX_FRAME_BYTES)
    try:
        if not _is_pipe_like(stream):
            return reader, asyncio.ensure_future(_feed_from_file(reader, stream.buffer))
        await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), stream)
    except (OSError, ValueError) as exc:
        raise ReadWriteError(f"opening standard input failed: {exc}") from exc
    return reader, None


def _install_signal_handlers(
    loop: asyncio.AbstractEventLoop, callback: Callable[[str], None]
) -> List[signal.Signals]:
    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, callback, sig.name)
        except (NotImplementedError, RuntimeError):
            # no loop signal support here (non-main thread or Windows)
            continue
        installed.append(sig)
    return installed


async def serve(
    config: ServerConfig,
    reader: Optional[asyncio.StreamReader] = None,
    output: Optional[TextIO] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> None:
    """Run the server until EOF or a termination signal."""
    loop = asyncio.get_running_loop()
    feeder = None
    if reader is None:
        reader, feeder = await _stdin_reader(sys.stdin)
    writer = LineWriter(output or sys.stdout)

    async with OllamaClient(config.ollama_url, config.timeout, transport=transport) as client:
        server = StdioServer(Dispatcher(build_registry(client)))
        listener = asyncio.ensure_future(server.listen(reader, writer))

        def _on_signal(signame: str) -> None:
            if server.draining:
                logger.warning("received %s while draining, cancelling in-flight request", signame)
                listener.cancel()
            else:
                logger.info("received %s, shutting down", signame)
                server.shutdown()

        installed = _install_signal_handlers(loop, _on_signal)
        print("Ollama MCP Server running on stdio", file=sys.stderr)
        print(f"Connected to Ollama server: {config.ollama_url}", file=sys.stderr)
        try:
            await listener
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if not listener.cancelled() or (current is not None and current.cancelling()):
                raise
            logger.warning("in-flight request cancelled")
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)
            if feeder is not None and not feeder.done():
                feeder.cancel()

    logger.info("server stopped")


def run_stdio_server(config: ServerConfig) -> None:
    try:
        setup_logging(config.log_file, config.log_level)
    except OSError as exc:
        raise ConfigError(f"failed to open log file {config.log_file}: {exc}") from exc
    asyncio.run(serve(config))
