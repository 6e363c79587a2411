"""
Request signing for the BRIVA SNAP API.

Two signatures are involved:
- every API call carries an HMAC-SHA512 signature over the method, path,
  access token, body hash and timestamp, keyed with the client secret;
- the access token exchange carries an RSA (PKCS#1 v1.5, SHA-256) signature
  over "CLIENT_ID|TIMESTAMP", made with the partner's private key.
"""

import base64
import hashlib
import hmac

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed

from .enums import AuthErrorCode
from .exceptions import KeyFormatError, KeyTypeError, SigningError

PEM_BEGIN_MARKER = "-----BEGIN "

# SHA-256 of the empty string, used for GET and body-less requests
EMPTY_BODY_HASH = hashlib.sha256(b"").hexdigest()


def body_hash(method: str, body: str) -> str:
    """
    Hex SHA-256 digest of a request body.

    GET requests and empty bodies hash the empty string.
    """
    if method.upper() == "GET" or not body:
        return EMPTY_BODY_HASH
    return hashlib.sha256(body.encode("utf-8")).hexdigest()


def sign_request(
    method: str,
    path: str,
    body: str,
    access_token: str,
    client_secret: str,
    timestamp: str,
) -> str:
    """
    Compute the X-SIGNATURE header for an API call.

    Args:
        method: HTTP method
        path: Request path, without scheme and host
        body: Serialized JSON body, or "" for body-less requests
        access_token: Current bearer token
        client_secret: Partner client secret (HMAC key)
        timestamp: The X-TIMESTAMP value sent with the same request

    Returns:
        Base64-encoded HMAC-SHA512 signature
    """
    payload = ":".join([
        method.upper(),
        path,
        access_token,
        body_hash(method, body),
        timestamp,
    ])
    mac = hmac.new(client_secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha512)
    return base64.b64encode(mac.digest()).decode("ascii")


def load_rsa_private_key(private_key_pem: str) -> rsa.RSAPrivateKey:
    """
    Parse a PEM-encoded RSA private key.

    Both PKCS#1 ("RSA PRIVATE KEY") and PKCS#8 ("PRIVATE KEY") containers
    are accepted.

    Raises:
        KeyFormatError: If no PEM block is present or it cannot be parsed
        KeyTypeError: If the key is not an RSA key
    """
    if PEM_BEGIN_MARKER not in private_key_pem:
        raise KeyFormatError(
            code=AuthErrorCode.KEY_FORMAT.value,
            message="failed to decode PEM block containing private key",
        )

    try:
        key = serialization.load_pem_private_key(
            private_key_pem.strip().encode("utf-8"),
            password=None,
        )
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise KeyFormatError(
            code=AuthErrorCode.KEY_FORMAT.value,
            message=f"failed to parse private key: {e}",
        ) from e

    if not isinstance(key, rsa.RSAPrivateKey):
        raise KeyTypeError(
            code=AuthErrorCode.KEY_TYPE.value,
            message="private key is not RSA",
            details={"key_type": type(key).__name__},
        )
    return key


def build_assertion(client_id: str, timestamp: str, private_key_pem: str) -> str:
    """
    Compute the X-SIGNATURE header for the access token exchange.

    Args:
        client_id: Partner client id (also sent as X-CLIENT-KEY)
        timestamp: The X-TIMESTAMP value sent with the same request
        private_key_pem: PEM-encoded RSA private key

    Returns:
        Base64-encoded RSA PKCS#1 v1.5 signature

    Raises:
        KeyFormatError: If the key cannot be decoded
        KeyTypeError: If the key is not RSA
        SigningError: If the signing operation fails
    """
    private_key = load_rsa_private_key(private_key_pem)
    digest = hashlib.sha256(f"{client_id}|{timestamp}".encode("utf-8")).digest()

    try:
        signature = private_key.sign(digest, padding.PKCS1v15(), Prehashed(hashes.SHA256()))
    except (ValueError, TypeError) as e:
        raise SigningError(
            code=AuthErrorCode.SIGNING_FAILED.value,
            message=f"failed to sign payload: {e}",
        ) from e

    return base64.b64encode(signature).decode("ascii")
