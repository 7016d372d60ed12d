"""Deterministic content addressing for paintings.

params_hash = sha256(canonical JSON of VisualParams)[:8]
seed        = sha256("{minute_bucket}:{params_hash}")[:12]
filename    = DOOM_{YYYYMMDDHHmm}_{params_hash}_{seed}.webp

Canonical JSON sorts keys and drops whitespace, so field order never
changes the digest.
"""

import hashlib
import json

from painter.models import VisualParams

PARAMS_HASH_LENGTH = 8
SEED_LENGTH = 12
FILENAME_PREFIX = "DOOM"


def canonical_json(data: dict) -> str:
    return json.dumps(data, sort_keys=True, separators=(",", ":"))


def _sha256_hex(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def hash_visual_params(params: VisualParams | dict) -> str:
    data = params.to_dict() if isinstance(params, VisualParams) else params
    return _sha256_hex(canonical_json(data))[:PARAMS_HASH_LENGTH]


def seed_for_bucket(minute_bucket: str, params_hash: str) -> str:
    return _sha256_hex(f"{minute_bucket}:{params_hash}")[:SEED_LENGTH]


def build_file_name(minute_bucket: str, params_hash: str, seed: str, extension: str = "webp") -> str:
    """Minute bucket 2025-01-02T03:04 becomes DOOM_202501020304_{hash}_{seed}.webp."""
    compact = minute_bucket.replace("-", "").replace("T", "").replace(":", "")
    return f"{FILENAME_PREFIX}_{compact}_{params_hash}_{seed[:SEED_LENGTH]}.{extension}"
