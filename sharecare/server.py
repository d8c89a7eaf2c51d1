"""HTTP front end: static files plus a small JSON API over the database."""

from __future__ import annotations

import argparse
import itertools
import logging
import re
import socketserver
import sys
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .database import DEFAULT_PATH, Database, DatabaseError

PORT = 8080
BUF_SIZE = 8192
BACKLOG = 50

logger = logging.getLogger(__name__)

_INT_MIN, _INT_MAX = -(2**31), 2**31 - 1


@dataclass(frozen=True)
class Request:
    """The parts of an HTTP request the server looks at."""

    method: str
    path: str
    body: str | None


@dataclass(frozen=True)
class Response:
    """An HTTP response ready to be written to a socket."""

    status: str
    content_type: str
    body: bytes = b""
    cors: bool = True

    def to_bytes(self) -> bytes:
        """Serialise status line, headers and body."""
        lines = [f"HTTP/1.1 {self.status}", f"Content-Type: {self.content_type}"]
        if self.cors:
            lines.append("Access-Control-Allow-Origin: *")
        lines.append(f"Content-Length: {len(self.body)}")
        lines.append("Connection: close")
        head = "\r\n".join(lines) + "\r\n\r\n"
        return head.encode("ascii") + self.body


def _reply(status: str, content_type: str, body: str) -> Response:
    return Response(status, content_type, body.encode("utf-8"))


_REQUEST_LINE = re.compile(
    r"[ \t\n\r\f\v]*(\S{1,7})[ \t\n\r\f\v]*(\S{1,255})?", re.ASCII
)


def parse_request(raw: bytes) -> Request:
    """Extract method, path (without query string) and body from raw bytes."""
    text = raw.decode("utf-8", errors="replace").split("\0", 1)[0]
    match = _REQUEST_LINE.match(text)
    method = match.group(1) if match else ""
    path = (match.group(2) or "") if match else ""
    path = path.split("?", 1)[0]
    separator = text.find("\r\n\r\n")
    body = text[separator + 4 :] if separator >= 0 else None
    return Request(method, path, body)


_CONTENT_TYPES = (
    ((".html",), "text/html"),
    ((".css",), "text/css"),
    ((".js",), "application/javascript"),
    ((".png",), "image/png"),
    ((".jpg", ".jpeg"), "image/jpeg"),
)

_STATIC_MARKERS = (".html", ".css", ".js", ".png", ".jpg")


def content_type_for(path: str) -> str:
    """Guess the content type from the extensions found in ``path``."""
    for markers, content_type in _CONTENT_TYPES:
        if any(marker in path for marker in markers):
            return content_type
    return "text/plain"


def is_static_path(path: str) -> bool:
    """Whether a GET on ``path`` is answered with a file from disk."""
    return path == "/" or any(marker in path for marker in _STATIC_MARKERS)


@dataclass(frozen=True)
class _Field:
    pattern: re.Pattern[str]
    convert: Callable[[str], Any]


def _text(limit: int) -> _Field:
    return _Field(re.compile(f'[^"]{{1,{limit}}}'), str)


def _to_int(value: str) -> int:
    return max(_INT_MIN, min(_INT_MAX, int(value)))


_INT = _Field(re.compile(r"[ \t\n\r\f\v]*([+-]?\d+)", re.ASCII), _to_int)
_FLOAT = _Field(
    re.compile(
        r"[ \t\n\r\f\v]*([+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?"
        r"|inf(?:inity)?|nan))",
        re.ASCII | re.IGNORECASE,
    ),
    float,
)


def _scan(text: str, spec: Sequence[str | _Field]) -> list[Any]:
    """Match ``spec`` against ``text`` left to right, stopping at the first mismatch."""
    values: list[Any] = []
    pos = 0
    for item in spec:
        if isinstance(item, str):
            if not text.startswith(item, pos):
                break
            pos += len(item)
            continue
        match = item.pattern.match(text, pos)
        if not match:
            break
        values.append(item.convert(match.group(match.lastindex or 0)))
        pos = match.end()
    return values


def _fill(values: list[Any], defaults: tuple) -> tuple:
    return tuple(values) + defaults[len(values) :]


_ENTE_SPEC = (
    '{"Nome":"', _text(127),
    '","Descrizione":"', _text(255),
    '","Sede":"', _text(127),
)
_DONAZIONE_SPEC = ('{"ID_Utente":', _INT, ',"ID_Ente":', _INT, ',"Importo":', _FLOAT)
_CHECKOUT_SPEC = (
    '{"tipo":"', _text(15),
    '","id_ente":', _INT,
    ',"id_articolo":', _INT,
    ',"email":"', _text(127),
    '","importo":', _FLOAT,
    ',"indirizzo":"', _text(255),
)
_POST_SPEC = ('{"Nome":"', _text(127), '","Messaggio":"', _text(1023))


def parse_ente(body: str) -> tuple[str, str, str]:
    """Read (nome, descrizione, sede); fields that do not match stay empty."""
    return _fill(_scan(body, _ENTE_SPEC), ("", "", ""))


def parse_donazione(body: str) -> tuple[int, int, float]:
    """Read (id_utente, id_ente, importo); missing fields are zero."""
    return _fill(_scan(body, _DONAZIONE_SPEC), (0, 0, 0.0))


def parse_checkout(body: str | None) -> tuple[str, int, int, str, float, str]:
    """Read (tipo, id_ente, id_articolo, email, importo, indirizzo)."""
    return _fill(_scan(body or "", _CHECKOUT_SPEC), ("", 0, 0, "", 0.0, ""))


def parse_post(body: str) -> tuple[str, str]:
    """Read (nome, messaggio); raise ValueError unless both are present."""
    values = _scan(body, _POST_SPEC)
    if len(values) != 2:
        raise ValueError("JSON non valido")
    return values[0], values[1]


class ShareCareApp:
    """Turns raw request bytes into responses."""

    def __init__(self, db_path: str = DEFAULT_PATH, root: str | Path = ".") -> None:
        self.db_path = db_path
        self.root = Path(root)
        self._routes: dict[tuple[str, str], Callable[[Database, str | None], Response]] = {
            ("GET", "/enti"): self._get_enti,
            ("POST", "/enti"): self._post_enti,
            ("GET", "/articoli"): self._get_articoli,
            ("POST", "/donazioni"): self._post_donazioni,
            ("POST", "/checkout"): self._post_checkout,
            ("GET", "/blog"): self._get_blog,
            ("POST", "/blog"): self._post_blog,
        }

    def handle(self, raw: bytes) -> Response | None:
        """Answer one request; None when nothing was received."""
        if not raw:
            return None
        with Database(self.db_path) as db:
            request = parse_request(raw)
            logger.debug("[DEBUG] Richiesta: %s %s", request.method, request.path)
            if request.method == "GET" and is_static_path(request.path):
                return self.serve_static(request.path)
            route = self._routes.get((request.method, request.path))
            if route is None:
                response = _reply("404 Not Found", "text/plain", "Risorsa non trovata")
            else:
                response = route(db, request.body)
        logger.debug("[DEBUG] Risposta inviata: %s", response.status)
        return response

    def serve_static(self, path: str) -> Response:
        """Read a file under the root; "/" maps to index.html."""
        name = "index.html" if path == "/" else "." + path
        try:
            data = (self.root / name).read_bytes()
        except OSError:
            response = _reply("404 Not Found", "text/plain", "File non trovato")
            logger.debug("[DEBUG] Risposta inviata: %s", response.status)
            return response
        return Response("200 OK", content_type_for(name), data, cors=False)

    @staticmethod
    def _get_enti(db: Database, body: str | None) -> Response:
        return _reply("200 OK", "application/json", db.enti_json())

    @staticmethod
    def _post_enti(db: Database, body: str | None) -> Response:
        if body is None:
            return _reply("400 Bad Request", "text/plain", "Body mancante")
        nome, descrizione, sede = parse_ente(body)
        if not nome:
            return _reply("400 Bad Request", "text/plain", "Nome obbligatorio")
        try:
            db.insert_ente(nome, descrizione, sede)
        except DatabaseError:
            return _reply(
                "500 Internal Server Error", "text/plain", "Errore inserimento ente"
            )
        return _reply("201 Created", "application/json", '{"msg":"Ente creato"}')

    @staticmethod
    def _get_articoli(db: Database, body: str | None) -> Response:
        return _reply("200 OK", "application/json", db.articoli_json())

    @staticmethod
    def _post_donazioni(db: Database, body: str | None) -> Response:
        if body is None:
            return _reply("400 Bad Request", "text/plain", "Body mancante")
        id_utente, id_ente, importo = parse_donazione(body)
        if id_utente == 0 or id_ente == 0 or importo <= 0:
            return _reply("400 Bad Request", "text/plain", "Campi obbligatori mancanti")
        try:
            db.insert_donazione(id_utente, id_ente, importo)
        except DatabaseError:
            return _reply("500 Internal Server Error", "text/plain", "Errore donazione")
        return _reply(
            "201 Created", "application/json", '{"msg":"Donazione registrata"}'
        )

    @staticmethod
    def _post_checkout(db: Database, body: str | None) -> Response:
        try:
            db.insert_transazione(*parse_checkout(body))
        except DatabaseError:
            return _reply("500", "text/plain", "DB error")
        return _reply("200 OK", "application/json", '{"msg":"ok"}')

    @staticmethod
    def _get_blog(db: Database, body: str | None) -> Response:
        return _reply("200 OK", "application/json", db.blog_json())

    @staticmethod
    def _post_blog(db: Database, body: str | None) -> Response:
        try:
            if body is None:
                raise ValueError("Body mancante")
            nome, messaggio = parse_post(body)
        except ValueError:
            return _reply("400 Bad Request", "text/plain", "JSON non valido")
        try:
            db.insert_post(nome, messaggio)
        except DatabaseError:
            return _reply("500 Internal Server Error", "text/plain", "Errore DB")
        return _reply("201 Created", "application/json", '{"msg":"Post salvato"}')


def serve(app: ShareCareApp, host: str = "", port: int = PORT) -> None:
    """Serve ``app`` forever, one thread per connection."""
    counter = itertools.count(1)
    lock = threading.Lock()

    class _Handler(socketserver.BaseRequestHandler):
        def handle(self) -> None:
            sock = self.request
            try:
                raw = sock.recv(BUF_SIZE - 1)
                response = app.handle(raw)
            except DatabaseError:
                logger.error("[ERRORE] DB thread non disponibile")
                return
            if response is not None:
                sock.sendall(response.to_bytes())
            logger.info("[FINE CONNESSIONE] Client socket %d", sock.fileno())

    class _Server(socketserver.ThreadingTCPServer):
        daemon_threads = True
        request_queue_size = BACKLOG

        def process_request(self, request, client_address) -> None:
            with lock:
                numero = next(counter)
            ip, client_port = client_address[0], client_address[1]
            logger.info(
                "[CONNESSIONE %d] %s da %s:%d", numero, time.ctime(), ip, client_port
            )
            super().process_request(request, client_address)

    with _Server((host, port), _Handler) as server:
        logger.info("[ShareCare] Server multithread su http://localhost:%d", port)
        server.serve_forever()


def main(argv: Sequence[str] | None = None) -> int:
    """Create the tables, then serve until interrupted."""
    parser = argparse.ArgumentParser(prog="sharecare")
    parser.add_argument("--host", default="")
    parser.add_argument("--port", type=int, default=PORT)
    parser.add_argument("--db", default=DEFAULT_PATH)
    parser.add_argument("--root", default=".")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG, format="%(message)s", stream=sys.stdout)

    try:
        with Database(args.db) as db:
            db.init_schema()
    except DatabaseError:
        print("[ERRORE] Inizializzazione DB fallita", file=sys.stderr)
        return 1

    try:
        serve(ShareCareApp(args.db, args.root), args.host, args.port)
    except OSError as exc:
        print(f"bind: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 0
    return 0


if __name__ == "__main__":
    sys.exit(main())