import base64
import os
from datetime import timedelta

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from src.api.auth_utils import create_member_token, get_password_hash, verify_password

ANSWER_KEY_ENV = "REG_ANSWER_KEY"
NONCE_BYTES = 12


class EncryptionError(Exception):
    """Bad key or a tag that does not decrypt."""


def bytes_to_b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("utf-8")


def b64_to_bytes(data: str) -> bytes:
    return base64.urlsafe_b64decode(data.encode("utf-8"))


def generate_answer_key() -> str:
    return bytes_to_b64(AESGCM.generate_key(bit_length=128))


class PasslibPasswordHasher:
    """Argon2 hashing through passlib."""

    def hash_password(self, plain: str) -> str:
        return get_password_hash(plain)

    def verify_password(self, plain: str, hashed: str) -> bool:
        return verify_password(plain, hashed)


class AesGcmAnswerEncryptor:
    """
    Encrypts security question answers.

    Tags are "<nonce>.<ciphertext>", both url-safe base64. The ciphertext
    carries the 16 byte GCM tag, so tampering is detected on decrypt.
    """

    def __init__(self, key: str) -> None:
        try:
            self._aesgcm = AESGCM(b64_to_bytes(key))
        except ValueError as e:
            raise EncryptionError(f"Invalid answer encryption key: {e}") from e

    @classmethod
    def from_env(cls) -> "AesGcmAnswerEncryptor":
        key = os.environ.get(ANSWER_KEY_ENV)
        if not key:
            raise EncryptionError(f"{ANSWER_KEY_ENV} is not set")
        return cls(key)

    def encrypt(self, plaintext: str) -> str:
        nonce = os.urandom(NONCE_BYTES)
        ciphertext = self._aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
        return f"{bytes_to_b64(nonce)}.{bytes_to_b64(ciphertext)}"

    def decrypt(self, tag: str) -> str:
        try:
            nonce_b64, ciphertext_b64 = tag.split(".", 1)
            data = self._aesgcm.decrypt(b64_to_bytes(nonce_b64), b64_to_bytes(ciphertext_b64), None)
        except (ValueError, InvalidTag) as e:
            raise EncryptionError("Answer tag could not be decrypted") from e
        return data.decode("utf-8")


class JWTTokenIssuer:
    """Issues sign-in tokens for freshly registered members."""

    def create_token(self, member_id: int, ttl_minutes: int) -> str:
        return create_member_token(member_id, timedelta(minutes=ttl_minutes))
