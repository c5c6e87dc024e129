import socketserver
import threading
from typing import Optional


class FakeChatServer:
    """Single-connection TCP server that records what the client sends."""

    def __init__(self, greeting: bytes = b"") -> None:
        self._greeting = greeting
        self._lock = threading.Lock()
        self._received = bytearray()
        self.connected = threading.Event()
        self._server: Optional[socketserver.ThreadingTCPServer] = None
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._server is not None:
            return
        server = socketserver.ThreadingTCPServer(("127.0.0.1", 0), self._make_handler())
        server.daemon_threads = True
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        self._server = server
        self._thread = thread

    def shutdown(self) -> None:
        if self._server is None:
            return
        self._server.shutdown()
        self._server.server_close()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
        self._server = None
        self._thread = None

    @property
    def address(self) -> str:
        if self._server is None:
            raise RuntimeError("server not started")
        host, port = self._server.server_address[:2]
        return f"{host}:{port}"

    def snapshot(self) -> bytes:
        with self._lock:
            return bytes(self._received)

    def _make_handler(self):
        greeting = self._greeting
        lock = self._lock
        received = self._received
        connected = self.connected

        class Handler(socketserver.BaseRequestHandler):
            def handle(self) -> None:
                connected.set()
                if greeting:
                    self.request.sendall(greeting)
                self.request.settimeout(2.0)
                while True:
                    try:
                        chunk = self.request.recv(1024)
                    except OSError:
                        return
                    if not chunk:
                        return
                    with lock:
                        received.extend(chunk)

        return Handler
