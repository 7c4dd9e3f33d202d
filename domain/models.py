# domain/models.py
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime

Address = tuple[str, str]  # (display name, address)

@dataclass
class Attachment:
    filename: str
    content: bytes
    content_type: str
    content_id: str | None = None

@dataclass
class ParsedEmail:
    subject: str = ""
    from_: list[Address] = field(default_factory=list)
    sender: Address | None = None
    reply_to: list[Address] = field(default_factory=list)
    to: list[Address] = field(default_factory=list)
    cc: list[Address] = field(default_factory=list)
    bcc: list[Address] = field(default_factory=list)
    date: datetime | None = None
    date_str: str = ""
    message_id: str = ""
    in_reply_to: str = ""
    references: list[str] = field(default_factory=list)
    headers: dict[str, list[str]] = field(default_factory=dict)  # todas las apariciones
    # Cuerpo: solo lo rellena el parseo completo
    text_body: str | None = None
    html_body: str | None = None
    attachments: list[Attachment] = field(default_factory=list)
    embedded_files: list[Attachment] = field(default_factory=list)

    @property
    def from_addr(self) -> str:
        return self.from_[0][1] if self.from_ else ""

    @property
    def has_body(self) -> bool:
        return self.text_body is not None or self.html_body is not None

@dataclass
class MailItem:
    msg_num: int
    size: int
    email: ParsedEmail | None = None
