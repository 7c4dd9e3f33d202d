"""Fixtures y dobles de prueba compartidos."""

from __future__ import annotations

import io
import poplib

import pytest

from domain.errors import CommandError


def make_message(n: int) -> str:
    """Correo de texto plano simple, numerado."""
    return "\n".join([
        "From: Alice Example <alice@example.com>",
        "To: bob@example.com",
        f"Subject: Mensaje {n}",
        f"Date: Mon, {n:02d} Jan 2024 10:00:00 +0000",
        f"Message-ID: <msg{n}@example.com>",
        "",
        f"Cuerpo del mensaje {n}.",
        "Segunda linea.",
    ])


MULTIPART_MESSAGE = "\n".join([
    "From: =?utf-8?q?Jos=C3=A9?= <jose@example.com>",
    "To: Bob <bob@example.com>, carol@example.com",
    "Cc: dave@example.com",
    "Reply-To: soporte@example.com",
    "Subject: =?utf-8?q?Informe_mensual?=",
    "Date: Tue, 02 Jan 2024 09:30:00 +0100",
    "Message-ID: <informe@example.com>",
    "In-Reply-To: <previo@example.com>",
    "References: <raiz@example.com> <previo@example.com>",
    "MIME-Version: 1.0",
    'Content-Type: multipart/mixed; boundary="XYZ"',
    "",
    "--XYZ",
    'Content-Type: multipart/alternative; boundary="ALT"',
    "",
    "--ALT",
    "Content-Type: text/plain; charset=utf-8",
    "",
    "Hola, adjunto el informe.",
    "--ALT",
    "Content-Type: text/html; charset=utf-8",
    "",
    "<p>Hola, adjunto el informe.</p>",
    "--ALT--",
    "--XYZ",
    "Content-Type: text/csv",
    'Content-Disposition: attachment; filename="informe.csv"',
    "Content-Transfer-Encoding: base64",
    "",
    "YSxiCjEsMgo=",
    "--XYZ--",
    "",
])


class FakeProtocolClient:
    """
    Cliente POP3 en memoria con el contrato ProtocolClient.
    `messages`: número -> (uid, texto).
    """

    def __init__(self, messages: dict[int, tuple[str, str]]) -> None:
        self.messages = messages
        self.sent: list[str] = []
        self.failing_top: set[int] = set()
        self.uidl_lines: list[str] | None = None
        self.sizes_override: list[int] | None = None
        self._pending: list[str] | None = None

    def _get(self, command: str, n: int) -> tuple[str, str]:
        if n not in self.messages:
            raise CommandError(command, "-ERR no such message")
        return self.messages[n]

    def send_command(self, command: str) -> str:
        self.sent.append(command)
        parts = command.split()
        name = parts[0]
        if name == "UIDL" and len(parts) == 1:
            self._pending = self.uidl_lines if self.uidl_lines is not None else [
                f"{n} {uid}" for n, (uid, _) in sorted(self.messages.items())
            ]
            return ""
        if name == "UIDL":
            n = int(parts[1])
            uid, _ = self._get(command, n)
            return f"{n} {uid}"
        if name == "TOP":
            n, k = int(parts[1]), int(parts[2])
            _, text = self._get(command, n)
            if n in self.failing_top:
                raise CommandError(command, "-ERR temporarily unavailable")
            header, _, body = text.partition("\n\n")
            self._pending = header.split("\n") + [""] + body.split("\n")[:k]
            return "top of message follows"
        raise CommandError(command, "-ERR unknown command")

    def read_multiline_response(self) -> list[str]:
        lines, self._pending = self._pending, None
        assert lines is not None, "read_multiline_response sin comando previo"
        return lines

    def retrieve(self, msg: int) -> str:
        self.sent.append(f"RETR {msg}\r\n")
        return self._get(f"RETR {msg}", msg)[1]

    def list_all(self) -> tuple[list[int], list[int]]:
        msgs = sorted(self.messages)
        sizes = self.sizes_override if self.sizes_override is not None else [
            len(self.messages[n][1]) for n in msgs
        ]
        return msgs, sizes


@pytest.fixture
def five_messages() -> dict[int, tuple[str, str]]:
    return {n: (f"uid-{n:03d}", make_message(n)) for n in range(1, 6)}


@pytest.fixture
def fake_client(five_messages) -> FakeProtocolClient:
    return FakeProtocolClient(five_messages)


class FakeSocket:
    """Socket que registra lo enviado; las respuestas vienen de `file`."""

    def __init__(self) -> None:
        self.sent: list[bytes] = []
        self.closed = False

    def sendall(self, data: bytes) -> None:
        self.sent.append(data)

    def shutdown(self, how) -> None:
        pass

    def close(self) -> None:
        self.closed = True


def make_poplib_conn(*server_lines: bytes) -> poplib.POP3:
    """poplib.POP3 real sin red: lee `server_lines` y escribe en un FakeSocket."""
    conn = poplib.POP3.__new__(poplib.POP3)
    conn.host = "pop.example.com"
    conn.port = poplib.POP3_PORT
    conn._debugging = 0
    conn._tls_established = False
    conn.sock = FakeSocket()
    conn.file = io.BytesIO(b"".join(line + b"\r\n" for line in server_lines))
    conn.welcome = b"+OK POP3 ready"
    return conn
