"""Development server for Marquee.

Serves the built site with live reload for local authoring:
- Injects a reload script into HTML responses.
- Answers unknown URLs with the site's 404 page and a 404 status.
- Watches content, layouts and data and rebuilds on change.

Key classes:
- DevServer: Builds, serves and rebuilds the site.
- _ReloadHandler: HTTP handler that injects the reload script and enforces 404s.
- _ChangeHandler: File system event handler that triggers rebuilds.
"""

from __future__ import annotations

import asyncio
import functools
import json
import os
import shutil
import threading
import time
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

import websockets
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .build import build_site, load_config
from .content import ContentSchemaError
from .store import DuplicatePathError

WATCHED_FOLDERS = ("content", "layouts", "data")


def _inject(html: str, script: str) -> str:
    if "</body>" in html:
        return html.replace("</body>", f"{script}</body>")
    return html + script


class _ReloadHandler(SimpleHTTPRequestHandler):
    """Serves the output directory with the live reload script injected."""

    reload_script_template = """
    <script>
    (() => {{
      const ws = new WebSocket('ws://' + location.hostname + ':{ws_port}');
      ws.onmessage = (event) => {{
        const data = JSON.parse(event.data || '{{}}');
        if (data.type === 'reload') location.reload();
      }};
    }})();
    </script>
    """
    reload_script = reload_script_template.format(ws_port=4001)

    def end_headers(self):
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        super().end_headers()

    def list_directory(self, path):  # pragma: no cover - exercised via send_head
        return self._serve_html(None, 404)

    def _serve_html(self, path: Path | None, status: int):
        """Write an HTML file with the reload script, or the 404 page."""
        if path is None:
            path = Path(self.directory) / "404.html"
            if not path.exists():
                self.send_error(404, "File not found")
                return None
        content = _inject(path.read_text(encoding="utf-8"), self.reload_script)
        encoded = content.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(encoded)))
        self.end_headers()
        self.wfile.write(encoded)
        return None

    def send_head(self):
        path = Path(self.translate_path(self.path))
        if path.is_dir():
            index_path = path / "index.html"
            if not index_path.exists():
                return self._serve_html(None, 404)
            path = index_path
        elif not path.exists():
            return self._serve_html(None, 404)

        if path.suffix == ".html":
            status = 404 if path.name == "404.html" else 200
            return self._serve_html(path, status)
        return super().send_head()


class DevServer:
    """Development server with live reload.

    Attributes:
        project_root: Root directory of the project.
        config: Site configuration.
        output_dir: Directory the built site is served from.
        http_port: Port for the HTTP server.
        ws_port: Port for the live reload websocket server.
    """

    def __init__(
        self, project_root: Path, http_port: int | None = None, ws_port: int | None = None
    ):
        self.project_root = project_root
        self.config = load_config(project_root)
        self.output_dir = project_root / self.config.get("output_dir", "output")
        self._staging_dir = self.output_dir.with_suffix(self.output_dir.suffix + ".staging")
        self.http_port = int(http_port or self.config.get("port", 4000))
        if ws_port is not None:
            self.ws_port = ws_port
        elif http_port is not None:
            self.ws_port = self.http_port + 1
        else:
            self.ws_port = int(self.config.get("ws_port", self.http_port + 1))
        self._reload_script = _ReloadHandler.reload_script_template.format(
            ws_port=self.ws_port
        )
        self._root_url = f"http://localhost:{self.http_port}"
        self._observer: Observer | None = None
        self._ws_clients: set = set()
        self._loop = asyncio.new_event_loop()
        self._rebuilding = False
        self._last_rebuild_at = 0.0
        self._last_signature: tuple | None = None
        self._debounce_seconds = 0.05
        self._post_build_delay = 0.05

    def start(self, strict: bool | None = None) -> None:  # pragma: no cover - integration path
        self._build(strict)
        self._last_signature = self._compute_signature()
        threading.Thread(target=self._start_http, daemon=True).start()
        threading.Thread(target=self._start_ws, daemon=True).start()
        self._start_watcher(strict)
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            self.stop()

    def stop(self) -> None:
        if self._observer:
            self._observer.stop()
            self._observer.join()
        self._loop.call_soon_threadsafe(self._loop.stop)

    def _build(self, strict: bool | None) -> None:
        staging = self._prepare_staging_dir()
        result = build_site(
            self.project_root,
            strict=strict,
            root_url=self._root_url,
            clean_output=True,
            output_dir_override=staging,
        )
        self._activate_staging(staging)
        for error in result.store.errors:
            print(f"Skipped {error.source_path}: {error.message}")

    def _start_http(self) -> None:  # pragma: no cover - integration path
        handler_cls = type(
            "_ReloadHandlerWithPort",
            (_ReloadHandler,),
            {"reload_script": self._reload_script},
        )
        handler = functools.partial(handler_cls, directory=str(self.output_dir))
        httpd = ThreadingHTTPServer(("", self.http_port), handler)
        print(f"Serving {self.output_dir} at http://localhost:{self.http_port}")
        httpd.serve_forever()

    def _start_ws(self) -> None:  # pragma: no cover - integration path
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_until_complete(self._run_ws_server())
        except OSError as exc:
            print(f"WebSocket server failed to start (port {self.ws_port}): {exc}")

    async def _run_ws_server(self) -> None:  # pragma: no cover - integration path
        async with websockets.serve(self._ws_handler, "0.0.0.0", self.ws_port):
            await asyncio.Future()

    async def _ws_handler(self, websocket):
        self._ws_clients.add(websocket)
        try:
            await websocket.wait_closed()
        finally:
            self._ws_clients.discard(websocket)

    def _broadcast_reload(self):
        message = json.dumps({"type": "reload"})
        asyncio.run_coroutine_threadsafe(self._async_broadcast(message), self._loop)

    async def _async_broadcast(self, message: str):
        stale = set()
        for ws in self._ws_clients:
            try:
                await ws.send(message)
            except Exception:
                stale.add(ws)
        for ws in stale:
            self._ws_clients.discard(ws)

    def _start_watcher(self, strict: bool | None) -> None:  # pragma: no cover
        handler = _ChangeHandler(self, strict)
        observer = Observer()
        for folder in WATCHED_FOLDERS:
            watch_path = self.project_root / folder
            if watch_path.exists():
                observer.schedule(handler, str(watch_path), recursive=True)
        # marquee.yaml lives at the root
        observer.schedule(handler, str(self.project_root), recursive=False)
        observer.start()
        self._observer = observer

    def rebuild(self, strict: bool | None) -> None:
        """Rebuild after a change, keeping the last good output on content errors."""
        now = time.time()
        if self._rebuilding or (now - self._last_rebuild_at) < self._debounce_seconds:
            return
        signature = self._compute_signature()
        if signature is not None and signature == self._last_signature:
            return
        self._rebuilding = True
        try:
            print("Change detected; rebuilding...")
            try:
                self._build(strict)
            except (ContentSchemaError, DuplicatePathError) as exc:
                print(f"Rebuild failed: {exc}")
                return
            self._last_signature = signature
            if self._post_build_delay:
                time.sleep(self._post_build_delay)
            self._broadcast_reload()
        finally:
            self._rebuilding = False
            self._last_rebuild_at = time.time()

    def _compute_signature(self) -> tuple | None:
        entries: list[tuple] = []
        roots = [self.project_root / folder for folder in WATCHED_FOLDERS]
        for root in roots:
            if not root.exists():
                continue
            for path in sorted(root.rglob("*")):
                if path.is_dir():
                    continue
                try:
                    stat = path.stat()
                except OSError:
                    continue
                rel = path.relative_to(self.project_root)
                entries.append((str(rel), stat.st_mtime_ns, stat.st_size))
        config = self.project_root / "marquee.yaml"
        if config.exists():
            stat = config.stat()
            entries.append(("marquee.yaml", stat.st_mtime_ns, stat.st_size))
        return tuple(entries) if entries else None

    def _prepare_staging_dir(self) -> Path:
        staging = self._staging_dir
        if staging.exists():
            shutil.rmtree(staging)
        staging.mkdir(parents=True, exist_ok=True)
        return staging

    def _activate_staging(self, staging: Path) -> None:
        if self.output_dir.exists():
            shutil.rmtree(self.output_dir)
        os.replace(staging, self.output_dir)


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, server: DevServer, strict: bool | None):
        super().__init__()
        self.server = server
        self.strict = strict

    def on_any_event(self, event):
        if event.is_directory:
            return
        path = Path(event.src_path)
        for ignored in (self.server.output_dir, self.server._staging_dir):
            try:
                path.relative_to(ignored)
                return
            except ValueError:
                pass
        self.server.rebuild(self.strict)
