# application/services/mailbox_helper.py
from __future__ import annotations
import logging

from domain.errors import PartialListError, ResponseShapeError
from domain.models import MailItem, ParsedEmail
from domain.ports import MessageParser, ProtocolClient

logger = logging.getLogger(__name__)

# Líneas pedidas a TOP en get_info: suficiente para las cabeceras habituales
INFO_TOP_LINES = 120


class MailboxHelper:
    """
    Operaciones de conveniencia sobre una sesión POP3 ya autenticada.

    La sesión pertenece al llamante: el helper no la abre ni la cierra, y
    no admite llamadas concurrentes sobre la misma sesión. Ningún error se
    reintenta; se propagan según la etapa que falló (CommandError,
    ResponseShapeError, MessageParseError, errores de transporte).
    """

    def __init__(self, client: ProtocolClient, parser: MessageParser) -> None:
        self.client = client
        self.parser = parser

    # ───────── metadatos de un mensaje ─────────
    def uidl(self, msg: int) -> str:
        """UID persistente del mensaje `msg`."""
        line = self.client.send_command(f"UIDL {msg}\r\n")
        fs = line.split()
        if len(fs) < 2:
            raise ResponseShapeError(f"Respuesta UIDL {msg} inesperada: {line!r}")
        return fs[1]

    def top(self, msg: int, n: int) -> str:
        """Cabeceras más las primeras `n` líneas del cuerpo."""
        self.client.send_command(f"TOP {msg} {n}\r\n")
        lines = self.client.read_multiline_response()
        return "\n".join(lines)

    # ───────── listados ─────────
    def uidl_all(self) -> tuple[list[int], list[str]]:
        """
        Devuelve (números de mensaje, UIDs), del mismo tamaño y alineados por
        índice.
        """
        self.client.send_command("UIDL\r\n")
        lines = self.client.read_multiline_response()
        msgs: list[int] = []
        uids: list[str] = []
        for line in lines:
            fs = line.split()
            if len(fs) < 2:
                raise ResponseShapeError(f"Línea UIDL incompleta: {line!r}")
            try:
                m = int(fs[0])
            except ValueError as exc:
                raise ResponseShapeError(f"Número de mensaje inválido en UIDL: {line!r}") from exc
            msgs.append(m)
            uids.append(fs[1])
        logger.debug("UIDL: %d mensajes", len(msgs))
        return msgs, uids

    # ───────── recuperación + parseo ─────────
    def get_mail(self, msg: int) -> ParsedEmail:
        text = self.client.retrieve(msg)
        return self.parser.parse(text)

    def get_info(self, msg: int) -> ParsedEmail:
        """
        Solo cabeceras (vía TOP). Los campos de cuerpo del resultado no son
        válidos; para el mensaje completo usar get_mail.
        """
        text = self.top(msg, INFO_TOP_LINES)
        return self.parser.parse_header(text)

    def get_list(self, n: int, partial: bool = False) -> list[MailItem]:
        """
        Resumen de los `n` correos más recientes (todos si n <= 0), el más
        reciente primero.

        El primer fallo al obtener cabeceras aborta la llamada. Con
        partial=True se lanza PartialListError con los resúmenes ya poblados.
        """
        msgs, sizes = self.client.list_all()
        num = len(msgs)
        if num != len(sizes):
            raise ResponseShapeError(
                f"get_list(): LIST devolvió {num} números y {len(sizes)} tamaños"
            )

        items: list[MailItem] = []
        for i in range(num - 1, -1, -1):
            items.append(MailItem(msg_num=msgs[i], size=sizes[i]))
            if n > 0 and len(items) >= n:
                break

        logger.debug("get_list(%s): %d de %d mensajes", n, len(items), num)
        for idx, item in enumerate(items):
            try:
                item.email = self.get_info(item.msg_num)
            except Exception as exc:
                if not partial:
                    raise
                raise PartialListError(items[:idx], item.msg_num) from exc
        return items
