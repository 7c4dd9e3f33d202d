# config/settings.py
from __future__ import annotations
from dataclasses import dataclass
import os
from dotenv import load_dotenv

from infrastructure.email import pop3_client
from infrastructure.email.tls import TLSConfig

load_dotenv()

@dataclass(frozen=True)
class Settings:
    # POP3
    POP3_HOST: str = os.getenv("POP3_HOST", "localhost")
    POP3_PORT: int = int(os.getenv("POP3_PORT", 0))                 # 0 = 110 en plain, 995 con TLS
    POP3_USERNAME: str = os.getenv("POP3_USERNAME", "")
    POP3_PASSWORD: str = os.getenv("POP3_PASSWORD", "")
    POP3_SECURITY: str = os.getenv("POP3_SECURITY", "tls").lower()  # tls | tls-skip-verify | plain
    POP3_SERVER_NAME: str = os.getenv("POP3_SERVER_NAME", "")        # override SNI/verificación
    POP3_CA_FILE: str = os.getenv("POP3_CA_FILE", "")
    POP3_TIMEOUT: float = float(os.getenv("POP3_TIMEOUT", 0))       # 0 = valor por defecto del socket

    # Resumen
    POP3_LIST_LIMIT: int = int(os.getenv("POP3_LIST_LIMIT", 10))    # <= 0: todos

    # Polling / log
    POLL_INTERVAL: int = int(os.getenv("POLL_INTERVAL", 0))         # 0 = una sola pasada
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # ───────── helpers ─────────
    def address(self) -> str:
        host = self.POP3_HOST
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"  # IPv6 literal
        return f"{host}:{self.port()}"

    def port(self) -> int:
        if self.POP3_PORT > 0:
            return self.POP3_PORT
        return pop3_client.POP3_PORT if self.POP3_SECURITY == "plain" else pop3_client.POP3_SSL_PORT

    def tls_config(self) -> TLSConfig:
        return TLSConfig(
            ca_file=self.POP3_CA_FILE or None,
            server_name=self.POP3_SERVER_NAME or None,
            insecure_skip_verify=self.POP3_SECURITY == "tls-skip-verify",
        )

    def timeout(self) -> float | None:
        return self.POP3_TIMEOUT if self.POP3_TIMEOUT > 0 else None
