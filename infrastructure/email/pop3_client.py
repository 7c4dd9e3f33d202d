# infrastructure/email/pop3_client.py
from __future__ import annotations
import logging
import poplib
import socket
import ssl
from typing import Any, Callable
from urllib.parse import urlsplit

from domain.errors import CommandError, ResponseShapeError
from infrastructure.email.tls import TLSConfig

logger = logging.getLogger(__name__)

POP3_PORT = poplib.POP3_PORT          # 110
POP3_SSL_PORT = poplib.POP3_SSL_PORT  # 995


def _split_address(address: str, default_port: int) -> tuple[str, int]:
    """'host:port' o '[::1]:port' -> (host, port)."""
    parts = urlsplit(f"//{address.strip()}")
    if not parts.hostname:
        raise ValueError(f"Dirección POP3 inválida: {address!r}")
    return parts.hostname, parts.port or default_port


def _error_text(resp: Any) -> str:
    return resp.decode("utf-8", errors="replace") if isinstance(resp, bytes) else str(resp)


class _GreetingCheck:
    """Convierte un saludo -ERR en CommandError y cierra el socket ya abierto."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        try:
            super().__init__(*args, **kwargs)
        except poplib.error_proto as exc:
            self.close()
            raise CommandError("<saludo>", _error_text(exc.args[0] if exc.args else b"")) from exc


class _POP3(_GreetingCheck, poplib.POP3):
    pass


class _POP3_TLS(_GreetingCheck, poplib.POP3_SSL):
    """POP3_SSL que permite fijar el nombre usado para SNI y la verificación."""

    def __init__(self, host: str, port: int, *, context: ssl.SSLContext,
                 server_name: str | None = None, timeout: Any = socket._GLOBAL_DEFAULT_TIMEOUT) -> None:
        self._server_name = server_name
        super().__init__(host, port, timeout=timeout, context=context)

    def _create_socket(self, timeout):
        sock = poplib.POP3._create_socket(self, timeout)
        try:
            return self.context.wrap_socket(sock, server_hostname=self._server_name or self.host)
        except Exception:
            sock.close()
            raise


class Pop3Client:
    """
    Sesión POP3 sobre poplib. Implementa el contrato ProtocolClient y además
    expone el resto de comandos RFC 1939 (USER/PASS, STAT, LIST, DELE...).

    Las respuestas -ERR se convierten en CommandError; los errores de
    transporte (OSError, ssl.SSLError) se propagan tal cual.
    """

    def __init__(self, conn: poplib.POP3) -> None:
        self.conn = conn
        self.welcome = self._decode(conn.getwelcome())

    def __enter__(self) -> "Pop3Client":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self.conn.sock is not None:
                self.quit()
        except Exception:
            logger.exception("Error cerrando POP3")
        finally:
            self.close()

    def close(self) -> None:
        """Cierra el socket sin enviar QUIT (idempotente)."""
        self.conn.close()

    # ───────── helpers ─────────
    def _decode(self, raw: bytes) -> str:
        return raw.decode(self.conn.encoding, errors="replace")

    @staticmethod
    def _decode_data(raw: bytes) -> str:
        # Texto del mensaje: los bytes no UTF-8 viajan como surrogates y el
        # parser los recupera intactos para aplicar el charset declarado
        return raw.decode("utf-8", errors="surrogateescape")

    def _call(self, command: str, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return fn(*args)
        except poplib.error_proto as exc:
            raise CommandError(command, _error_text(exc.args[0] if exc.args else b"")) from exc

    def _strip_status(self, resp: bytes) -> str:
        text = self._decode(resp)
        return text[3:].lstrip() if text.startswith("+OK") else text

    # ───────── contrato ProtocolClient ─────────
    def send_command(self, command: str) -> str:
        """
        Envía un comando de una línea (con o sin CRLF final, poplib lo añade) y
        devuelve la respuesta sin el indicador '+OK'.
        """
        line = command.rstrip("\r\n")
        logger.debug("POP3 > %s", line.split(" ", 1)[0])
        resp = self._call(line, self.conn._shortcmd, line)
        return self._strip_status(resp)

    def read_multiline_response(self) -> list[str]:
        lines: list[str] = []
        while True:
            raw, _ = self._call("<multilínea>", self.conn._getline)
            if raw == b".":
                return lines
            if raw.startswith(b".."):
                raw = raw[1:]
            lines.append(self._decode_data(raw))

    def retrieve(self, msg: int) -> str:
        _, raw_lines, octets = self._call(f"RETR {msg}", self.conn.retr, msg)
        logger.debug("RETR %s: %s octetos", msg, octets)
        return "\n".join(self._decode_data(line) for line in raw_lines)

    def list_all(self) -> tuple[list[int], list[int]]:
        _, raw_lines, _ = self._call("LIST", self.conn.list)
        msgs: list[int] = []
        sizes: list[int] = []
        for raw in raw_lines:
            line = self._decode(raw)
            fs = line.split()
            if len(fs) < 2:
                raise ResponseShapeError(f"Línea LIST incompleta: {line!r}")
            try:
                msgs.append(int(fs[0]))
                sizes.append(int(fs[1]))
            except ValueError as exc:
                raise ResponseShapeError(f"Línea LIST no numérica: {line!r}") from exc
        return msgs, sizes

    # ───────── resto de la sesión ─────────
    def user(self, name: str) -> str:
        return self._strip_status(self._call("USER", self.conn.user, name))

    def pass_(self, password: str) -> str:
        # Nunca incluir la contraseña en el error ni en el log
        return self._strip_status(self._call("PASS", self.conn.pass_, password))

    def auth(self, name: str, password: str) -> None:
        self.user(name)
        self.pass_(password)
        logger.debug("POP3 autenticado como %s", name)

    def stat(self) -> tuple[int, int]:
        """(número de mensajes, tamaño total en octetos)."""
        return self._call("STAT", self.conn.stat)

    def list(self, msg: int) -> int:
        """Tamaño de un mensaje concreto."""
        line = self._strip_status(self._call(f"LIST {msg}", self.conn.list, msg))
        fs = line.split()
        if len(fs) < 2 or not fs[1].isdigit():
            raise ResponseShapeError(f"Respuesta LIST {msg} inesperada: {line!r}")
        return int(fs[1])

    def dele(self, msg: int) -> str:
        return self._strip_status(self._call(f"DELE {msg}", self.conn.dele, msg))

    def noop(self) -> str:
        return self._strip_status(self._call("NOOP", self.conn.noop))

    def rset(self) -> str:
        return self._strip_status(self._call("RSET", self.conn.rset))

    def quit(self) -> str:
        return self._strip_status(self._call("QUIT", self.conn.quit))


# ───────── dial ─────────
def _timeout_arg(timeout: float | None) -> Any:
    return socket._GLOBAL_DEFAULT_TIMEOUT if timeout is None else timeout


def dial(address: str, timeout: float | None = None) -> Pop3Client:
    """Conexión POP3 en claro (puerto 110 por defecto)."""
    host, port = _split_address(address, POP3_PORT)
    return Pop3Client(_POP3(host, port, timeout=_timeout_arg(timeout)))


def dial_tls_with_config(address: str, tls_config: TLSConfig | ssl.SSLContext,
                         timeout: float | None = None) -> Pop3Client:
    """
    Conexión POP3 sobre TLS con la configuración del llamante. Los errores de
    conexión o de handshake se propagan sin envolver; un saludo -ERR lanza
    CommandError. En ambos casos el socket queda cerrado.
    """
    host, port = _split_address(address, POP3_SSL_PORT)
    if isinstance(tls_config, ssl.SSLContext):
        context, server_name = tls_config, None
    else:
        context, server_name = tls_config.build_context(), tls_config.server_name
    conn = _POP3_TLS(host, port, context=context, server_name=server_name, timeout=_timeout_arg(timeout))
    return Pop3Client(conn)


def dial_tls_skip_verify(address: str, timeout: float | None = None) -> Pop3Client:
    """
    Conexión TLS SIN verificar el certificado del servidor. Solo para
    servidores de confianza o con certificado autofirmado.
    """
    logger.warning("TLS sin verificación de certificado hacia %s", address)
    return dial_tls_with_config(address, TLSConfig(insecure_skip_verify=True), timeout=timeout)
