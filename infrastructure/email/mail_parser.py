# infrastructure/email/mail_parser.py
from __future__ import annotations
import logging
from email.message import Message
from email.parser import HeaderParser
from email.utils import parsedate_to_datetime
from datetime import datetime

import pyzmail
from pyzmail.parse import decode_mail_header, get_mail_addresses

from domain.errors import MessageParseError
from domain.models import Attachment, ParsedEmail

logger = logging.getLogger(__name__)


def _parse_date(value: str) -> datetime | None:
    if not value:
        return None
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None


def _decoded(msg: Message, name: str) -> str:
    raw = msg.get(name)
    if raw is None:
        return ""
    return decode_mail_header(str(raw)).strip()


def _header_fields(msg: Message) -> ParsedEmail:
    """Campos de cabecera comunes al parseo completo y al de solo cabeceras."""
    senders = get_mail_addresses(msg, "sender")
    date_str = _decoded(msg, "date")
    return ParsedEmail(
        subject=_decoded(msg, "subject"),
        from_=get_mail_addresses(msg, "from"),
        sender=senders[0] if senders else None,
        reply_to=get_mail_addresses(msg, "reply-to"),
        to=get_mail_addresses(msg, "to"),
        cc=get_mail_addresses(msg, "cc"),
        bcc=get_mail_addresses(msg, "bcc"),
        date=_parse_date(date_str),
        date_str=date_str,
        message_id=_decoded(msg, "message-id"),
        in_reply_to=_decoded(msg, "in-reply-to"),
        references=_decoded(msg, "references").split(),
        headers=_all_headers(msg),
    )


def _all_headers(msg: Message) -> dict[str, list[str]]:
    # Cabeceras repetidas (Received...) conservan todos sus valores, en orden
    headers: dict[str, list[str]] = {}
    for k, v in msg.items():
        headers.setdefault(k, []).append(decode_mail_header(str(v)))
    return headers


def _part_bytes(part) -> bytes:
    payload = part.get_payload() or b""
    return payload.encode("utf-8", errors="surrogateescape") if isinstance(payload, str) else payload


def _part_text(part) -> str:
    try:
        return _part_bytes(part).decode(part.charset or "utf-8", errors="replace")
    except LookupError:
        return _part_bytes(part).decode("utf-8", errors="replace")


class PyzmailParser:
    """MessageParser sobre pyzmail."""

    def parse(self, text: str) -> ParsedEmail:
        try:
            email = _header_fields(HeaderParser().parsestr(text, headersonly=True))
            # Pop3Client decodifica con surrogateescape: se recuperan los bytes
            # originales para que los cuerpos 8bit salgan en su charset
            msg = pyzmail.PyzMessage.factory(text.encode("utf-8", errors="surrogateescape"))

            email.text_body = _part_text(msg.text_part) if msg.text_part else ""
            email.html_body = _part_text(msg.html_part) if msg.html_part else ""

            for part in msg.mailparts:
                if part.is_body:
                    continue
                payload = _part_bytes(part)
                content_id = (part.content_id or "").strip("<>") or None
                att = Attachment(
                    filename=part.filename or "adjunto",
                    content=payload,
                    content_type=part.type or "application/octet-stream",
                    content_id=content_id,
                )
                # inline con Content-ID -> recurso embebido (p.ej. imagen del HTML)
                if content_id and part.part.get_content_disposition() != "attachment":
                    email.embedded_files.append(att)
                else:
                    email.attachments.append(att)
        except Exception as exc:
            raise MessageParseError(f"No se pudo parsear el mensaje: {exc}") from exc

        logger.debug("Mensaje parseado: %d adjuntos, %d embebidos",
                     len(email.attachments), len(email.embedded_files))
        return email

    def parse_header(self, text: str) -> ParsedEmail:
        """Solo cabeceras: los campos de cuerpo quedan a None / vacíos."""
        try:
            msg = HeaderParser().parsestr(text, headersonly=True)
            return _header_fields(msg)
        except Exception as exc:
            raise MessageParseError(f"No se pudieron parsear las cabeceras: {exc}") from exc
