# services/pitchprint_relay/signing.py

import hashlib
import time
from typing import Optional

from app_platform.common.models import SignedPayload

from .config import RelayConfig


def compute_signature(api_key: str, secret_key: str, timestamp: int, digest: str = "md5") -> str:
    """Hex digest of api_key + secret_key + str(timestamp).

    MD5 is what PitchPrint verifies against; it proves possession of the
    secret within a short window, nothing stronger.
    """
    h = hashlib.new(digest)
    h.update(f"{api_key}{secret_key}{timestamp}".encode("utf-8"))
    return h.hexdigest()


def build_signed_payload(config: RelayConfig, now: Optional[float] = None) -> SignedPayload:
    # fresh timestamp per call, second resolution
    timestamp = int(time.time() if now is None else now)
    return SignedPayload(
        apiKey=config.api_key,
        timestamp=timestamp,
        signature=compute_signature(config.api_key, config.secret_key, timestamp, config.digest),
    )
