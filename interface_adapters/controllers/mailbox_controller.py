# interface_adapters/controllers/mailbox_controller.py
from __future__ import annotations
import logging

from config.settings import Settings
from application.services.mailbox_helper import MailboxHelper
from domain.models import MailItem
from infrastructure.email.mail_parser import PyzmailParser
from infrastructure.email.pop3_client import (
    Pop3Client,
    dial,
    dial_tls_skip_verify,
    dial_tls_with_config,
)

logger = logging.getLogger(__name__)

class MailboxController:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.parser = PyzmailParser()

    def _connect(self) -> Pop3Client:
        st = self.settings
        addr = st.address()
        if st.POP3_SECURITY == "plain":
            return dial(addr, timeout=st.timeout())
        if st.POP3_SECURITY == "tls-skip-verify":
            return dial_tls_skip_verify(addr, timeout=st.timeout())
        if st.POP3_SECURITY == "tls":
            return dial_tls_with_config(addr, st.tls_config(), timeout=st.timeout())
        raise ValueError(f"POP3_SECURITY desconocido: {st.POP3_SECURITY!r}")

    @staticmethod
    def _describe(item: MailItem) -> str:
        em = item.email
        if em is None:
            return f"#{item.msg_num} ({item.size} B)"
        return f"#{item.msg_num} ({item.size} B) {em.date_str or '-'} | {em.from_addr or '-'} | {em.subject or '-'}"

    def run_once(self) -> list[MailItem]:
        st = self.settings
        logger.info("Conectando a %s (%s)…", st.address(), st.POP3_SECURITY)
        with self._connect() as client:
            client.auth(st.POP3_USERNAME, st.POP3_PASSWORD)
            count, total = client.stat()
            logger.info("Buzón: %d mensajes, %d octetos", count, total)
            if not count:
                logger.info("Sin correos en el buzón.")
                return []

            helper = MailboxHelper(client, self.parser)
            items = helper.get_list(st.POP3_LIST_LIMIT)
            for item in items:
                logger.info("%s", self._describe(item))
            return items
