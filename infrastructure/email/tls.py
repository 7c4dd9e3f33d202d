# infrastructure/email/tls.py
from __future__ import annotations
import ssl
from dataclasses import dataclass

@dataclass(frozen=True)
class TLSConfig:
    """
    Opciones TLS controladas por el llamante. Los campos a None dejan el valor
    por defecto de ssl.create_default_context().
    """
    min_version: ssl.TLSVersion | None = None
    max_version: ssl.TLSVersion | None = None
    ca_file: str | None = None
    ca_path: str | None = None
    ca_data: str | None = None
    insecure_skip_verify: bool = False
    server_name: str | None = None   # SNI / nombre comprobado en el certificado
    ciphers: str | None = None       # cadena OpenSSL, p.ej. "ECDHE+AESGCM"
    cert_file: str | None = None
    key_file: str | None = None

    def build_context(self) -> ssl.SSLContext:
        ctx = ssl.create_default_context(
            cafile=self.ca_file,
            capath=self.ca_path,
            cadata=self.ca_data,
        )
        if self.min_version is not None:
            ctx.minimum_version = self.min_version
        if self.max_version is not None:
            ctx.maximum_version = self.max_version
        if self.ciphers:
            ctx.set_ciphers(self.ciphers)
        if self.cert_file:
            ctx.load_cert_chain(self.cert_file, self.key_file)
        if self.insecure_skip_verify:
            # check_hostname debe desactivarse antes que verify_mode
            ctx.check_hostname = False
            ctx.verify_mode = ssl.CERT_NONE
        return ctx
