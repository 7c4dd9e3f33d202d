# domain/ports.py
from __future__ import annotations
from typing import Protocol

from domain.models import ParsedEmail


class ProtocolClient(Protocol):
    def send_command(self, command: str) -> str:
        """Envía un comando; devuelve la línea de respuesta sin el '+OK'."""
        ...

    def read_multiline_response(self) -> list[str]:
        """Lee el bloque terminado en '.' que sigue a una respuesta positiva."""
        ...

    def retrieve(self, msg: int) -> str:
        """RETR de un mensaje; líneas unidas con '\\n'."""
        ...

    def list_all(self) -> tuple[list[int], list[int]]:
        """(números de mensaje, tamaños) en el orden del servidor."""
        ...


class MessageParser(Protocol):
    def parse(self, text: str) -> ParsedEmail:
        ...

    def parse_header(self, text: str) -> ParsedEmail:
        ...
