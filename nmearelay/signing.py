from __future__ import annotations
from pathlib import Path
from typing import Optional, Protocol as TypingProtocol, Union
import base64
import logging

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

log = logging.getLogger(__name__)


class Signer(TypingProtocol):
    def sign(self, text: str) -> Optional[str]: ...
    def verify(self, text: str, signature: Optional[str]) -> bool: ...


class RsaSigner:
    """
    SHA256withRSA (PKCS#1 v1.5) over the UTF-8 text, signatures as base64.

    A signer built from a public key only can verify but never sign; sign()
    then returns None, which makes the relay drop the outbound message.
    """

    def __init__(self,
                 private_key: Optional[rsa.RSAPrivateKey] = None,
                 public_key: Optional[rsa.RSAPublicKey] = None):
        if public_key is None and private_key is not None:
            public_key = private_key.public_key()
        self._private = private_key
        self._public = public_key

    @classmethod
    def generate(cls, bits: int = 2048) -> "RsaSigner":
        return cls(rsa.generate_private_key(public_exponent=65537, key_size=bits))

    @classmethod
    def from_pem(cls, private_pem: Optional[bytes] = None, public_pem: Optional[bytes] = None) -> "RsaSigner":
        private_key = serialization.load_pem_private_key(private_pem, password=None) if private_pem else None
        public_key = serialization.load_pem_public_key(public_pem) if public_pem else None
        return cls(private_key, public_key)

    @classmethod
    def from_files(cls,
                   private_path: Optional[Union[str, Path]] = None,
                   public_path: Optional[Union[str, Path]] = None) -> "RsaSigner":
        private_pem = Path(private_path).read_bytes() if private_path else None
        public_pem = Path(public_path).read_bytes() if public_path else None
        return cls.from_pem(private_pem, public_pem)

    def public_pem(self) -> bytes:
        if self._public is None:
            raise ValueError("no public key loaded")
        return self._public.public_bytes(
            serialization.Encoding.PEM,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        )

    def sign(self, text: str) -> Optional[str]:
        if self._private is None:
            log.error("Cannot sign: no private key loaded")
            return None
        try:
            raw = self._private.sign(text.encode("utf-8"), padding.PKCS1v15(), hashes.SHA256())
        except (ValueError, TypeError) as e:
            log.error("Signing failed: %s", e)
            return None
        return base64.b64encode(raw).decode("ascii")

    def verify(self, text: str, signature: Optional[str]) -> bool:
        if not signature or self._public is None:
            return False
        try:
            raw = base64.b64decode(signature.encode("ascii"), validate=True)
            self._public.verify(raw, text.encode("utf-8"), padding.PKCS1v15(), hashes.SHA256())
        except (InvalidSignature, ValueError):
            return False
        return True
