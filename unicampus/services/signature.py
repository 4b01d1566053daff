import base64
import binascii

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa


class WebhookVerificationError(Exception):
    """The signature could not be checked at all (bad key material or encoding)."""


def build_signed_payload(timestamp: str, callback_url: str, raw_body: bytes) -> bytes:
    # Raw body bytes as received; a re-serialized body would not match the signature.
    return timestamp.encode("utf-8") + callback_url.encode("utf-8") + raw_body


def load_public_key(public_key_pem: str) -> rsa.RSAPublicKey:
    try:
        key = serialization.load_pem_public_key(public_key_pem.encode("utf-8"))
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise WebhookVerificationError(f"Unable to load webhook public key: {exc}") from exc
    if not isinstance(key, rsa.RSAPublicKey):
        raise WebhookVerificationError("Webhook public key is not an RSA key")
    return key


def decode_signature(signature_b64: str) -> bytes:
    try:
        return base64.b64decode(signature_b64.strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise WebhookVerificationError("Signature is not valid base64") from exc


def verify_webhook_signature(
    timestamp: str,
    callback_url: str,
    raw_body: bytes,
    signature_b64: str,
    public_key_pem: str,
) -> bool:
    key = load_public_key(public_key_pem)
    signature = decode_signature(signature_b64)
    payload = build_signed_payload(timestamp, callback_url, raw_body)
    try:
        key.verify(signature, payload, padding.PKCS1v15(), hashes.SHA256())
    except InvalidSignature:
        return False
    return True
