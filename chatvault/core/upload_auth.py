"""
Upload-authentication parameters for client-side uploads to the image CDN.

The browser upload widget sends ``token``, ``expire`` and ``signature`` along
with the file; the CDN recomputes HMAC-SHA1(private_key, token + expire) and
rejects the upload on mismatch, on a reused token, or once ``expire`` passes.
The private key never leaves this process.
"""

import hmac
import logging
import time
import uuid
from hashlib import sha1
from typing import Callable, Dict, Optional, Union

from chatvault.domain.errors import UploadAuthError

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 1800
MAX_TTL_SECONDS = 3600


class UploadAuthSigner:
    """Derives signed upload parameters from the configured CDN keys."""

    def __init__(
        self,
        private_key: Optional[str],
        public_key: Optional[str] = None,
        url_endpoint: Optional[str] = None,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self._private_key = private_key
        self.public_key = public_key
        self.url_endpoint = url_endpoint
        self.ttl_seconds = min(ttl_seconds, MAX_TTL_SECONDS)
        self._clock = clock

    @property
    def configured(self) -> bool:
        return bool(self._private_key)

    def sign(self, token: str, expire: int) -> str:
        """Hex HMAC-SHA1 of ``token + expire`` keyed by the private key."""
        if not self._private_key:
            raise UploadAuthError("Image CDN private key is not configured", code="CDN_NOT_CONFIGURED")
        message = f"{token}{expire}".encode("utf-8")
        return hmac.new(self._private_key.encode("utf-8"), message, sha1).hexdigest()

    def get_authentication_parameters(
        self,
        token: Optional[str] = None,
        expire: Optional[int] = None,
    ) -> Dict[str, Union[str, int]]:
        """Issue a fresh ``{token, expire, signature}`` set.

        ``token`` and ``expire`` may be supplied by the caller; otherwise a
        random uuid4 token and ``now + ttl`` are used.
        """
        token = token or str(uuid.uuid4())
        expire = expire or int(self._clock()) + self.ttl_seconds
        try:
            signature = self.sign(token, expire)
        except UploadAuthError:
            raise
        except Exception as e:
            logger.error(f"Failed to sign upload parameters: {e}", exc_info=True)
            raise UploadAuthError("Could not generate upload parameters", code="CDN_SIGNING_FAILED") from e

        params: Dict[str, Union[str, int]] = {
            "token": token,
            "expire": expire,
            "signature": signature,
        }
        if self.public_key:
            params["publicKey"] = self.public_key
        if self.url_endpoint:
            params["urlEndpoint"] = self.url_endpoint
        return params
