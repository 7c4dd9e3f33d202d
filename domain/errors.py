# domain/errors.py
from __future__ import annotations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from domain.models import MailItem


class Pop3Error(Exception):
    """Base de los errores de los helpers de buzón."""


class CommandError(Pop3Error):
    """El servidor respondió -ERR, o la respuesta no se pudo enmarcar."""

    def __init__(self, command: str, response: str) -> None:
        self.command = command.strip()
        self.response = response
        super().__init__(f"{self.command or '<comando>'}: {response}")


class ResponseShapeError(Pop3Error, ValueError):
    """Respuesta positiva con un formato inesperado."""


class MessageParseError(Pop3Error):
    """El parser de correo rechazó el texto del mensaje."""


class PartialListError(Pop3Error):
    """
    Lo lanza MailboxHelper.get_list(partial=True) cuando falla un resumen.
    `items` contiene los resúmenes ya poblados antes del fallo; el error
    original queda en __cause__.
    """

    def __init__(self, items: list[MailItem], failed_msg: int) -> None:
        self.items = items
        self.failed_msg = failed_msg
        super().__init__(f"fallo en el mensaje {failed_msg} tras {len(items)} resumen(es)")
