"""
Content-addressed identifiers for LanceDB rows.
"""

import hashlib


def content_hash(text: str, metadata_json: str) -> str:
    """
    Returns the MD5 hex digest of `text + "-" + metadata_json`.

    The digest only depends on the input bytes, so the same document and
    metadata always map to the same row id across runs and processes.
    """
    representation = f"{text}-{metadata_json}"
    return hashlib.md5(representation.encode("utf-8")).hexdigest()
