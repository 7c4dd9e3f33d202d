# main.py
# Punto de entrada: resumen de los últimos correos del buzón POP3 (una pasada o polling)
from __future__ import annotations
import logging
import time
from config.settings import Settings
from interface_adapters.controllers.mailbox_controller import MailboxController

logger = logging.getLogger(__name__)


def main() -> None:
    settings = Settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    controller = MailboxController(settings=settings)

    logger.info("=== Resumen de buzón POP3 ===")
    logger.info("POP3 host=%s límite=%s", settings.address(), settings.POP3_LIST_LIMIT)
    if settings.POLL_INTERVAL <= 0:
        controller.run_once()
        return

    while True:
        try:
            controller.run_once()
        except Exception:
            logger.exception("Error en ciclo de polling")
        time.sleep(settings.POLL_INTERVAL)


if __name__ == "__main__":
    main()
