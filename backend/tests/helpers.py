import asyncio
import json
from collections import deque
from typing import Any, Optional
from urllib.parse import urlencode


class EventStreamClient:
    """
    Drives GET /events on an ASGI app in-process and parses its frames.

    HTTP test clients wait for the whole response body, which never comes for
    an event stream, so this talks ASGI directly and disconnects on close().
    """

    def __init__(self, app, session_id: Optional[str], role: Optional[str]):
        self.app = app
        self.session_id = session_id
        self.role = role
        self.status: Optional[int] = None
        self.headers: dict = {}
        self.comments: list = []
        self.ended = False
        self._outbox: asyncio.Queue = asyncio.Queue()
        self._disconnected = asyncio.Event()
        self._request_sent = False
        self._buffer = ""
        self._frames: deque = deque()
        self._task: Optional[asyncio.Task] = None

    async def __aenter__(self) -> "EventStreamClient":
        await self.open()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def open(self, timeout: float = 1.0) -> None:
        params = {}
        if self.session_id is not None:
            params["id"] = self.session_id
        if self.role is not None:
            params["role"] = self.role

        scope = {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": "GET",
            "scheme": "http",
            "path": "/events",
            "raw_path": b"/events",
            "root_path": "",
            "query_string": urlencode(params).encode(),
            "headers": [(b"host", b"testserver"), (b"accept", b"text/event-stream")],
            "client": ("testclient", 50000),
            "server": ("testserver", 80),
        }
        self._task = asyncio.create_task(self.app(scope, self._receive, self._send))

        message = await asyncio.wait_for(self._outbox.get(), timeout)
        assert message["type"] == "http.response.start"
        self.status = message["status"]
        self.headers = {k.decode(): v.decode() for k, v in message["headers"]}

        if self.status == 200:
            # Registration is complete once the connected comment arrives
            while "connected" not in self.comments:
                await self._pump(timeout)
                self._collect_comments()

    async def _receive(self) -> dict:
        if not self._request_sent:
            self._request_sent = True
            return {"type": "http.request", "body": b"", "more_body": False}
        await self._disconnected.wait()
        return {"type": "http.disconnect"}

    async def _send(self, message: dict) -> None:
        await self._outbox.put(message)

    async def _pump(self, timeout: float) -> None:
        if self.ended:
            raise EOFError("event stream ended")
        message = await asyncio.wait_for(self._outbox.get(), timeout)
        if message["type"] != "http.response.body":
            return
        self._buffer += message.get("body", b"").decode()
        while "\n\n" in self._buffer:
            frame, self._buffer = self._buffer.split("\n\n", 1)
            self._frames.append(frame)
        if not message.get("more_body", False):
            self.ended = True

    def _collect_comments(self) -> None:
        kept = deque()
        for frame in self._frames:
            if frame.startswith(":"):
                self.comments.append(frame[1:].strip())
            else:
                kept.append(frame)
        self._frames = kept

    def _pop_data(self) -> Optional[str]:
        self._collect_comments()
        if not self._frames:
            return None
        frame = self._frames.popleft()
        lines = [line[len("data: "):] for line in frame.split("\n") if line.startswith("data: ")]
        return "\n".join(lines)

    async def next_raw(self, timeout: float = 1.0) -> str:
        """Data of the next event frame, exactly as sent."""
        while True:
            data = self._pop_data()
            if data is not None:
                return data
            await self._pump(timeout)

    async def next_event(self, timeout: float = 1.0) -> Any:
        return json.loads(await self.next_raw(timeout))

    async def next_comment(self, timeout: float = 1.0) -> str:
        seen = len(self.comments)
        while len(self.comments) == seen:
            await self._pump(timeout)
            self._collect_comments()
        return self.comments[seen]

    async def assert_no_event(self, timeout: float = 0.05) -> None:
        try:
            event = await self.next_event(timeout)
        except asyncio.TimeoutError:
            return
        raise AssertionError(f"unexpected event: {event!r}")

    async def wait_ended(self, timeout: float = 1.0) -> None:
        """Wait for the server to finish the response on its own."""
        await asyncio.wait_for(self._task, timeout)
        while not self._outbox.empty():
            await self._pump(timeout)

    async def close(self, timeout: float = 1.0) -> None:
        """Disconnect the client and wait until the server has released the stream."""
        self._disconnected.set()
        if self._task is not None:
            await asyncio.wait_for(self._task, timeout)


def stream(app, session_id: Optional[str], role: Optional[str]) -> EventStreamClient:
    return EventStreamClient(app, session_id, role)
