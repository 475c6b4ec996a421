"""
File Operation Utilities

Content fingerprinting, durable writes and destination collision handling.

Author: brick-sync Project
License: MIT
"""

import os
import hashlib
from pathlib import Path
from typing import Union
from datetime import datetime

from .logger import get_logger

logger = get_logger(__name__)

DEFAULT_HASH_ALGORITHM = "sha512"

COLLISION_OVERWRITE = "overwrite"
COLLISION_RENAME = "rename"
COLLISION_STRATEGIES = (COLLISION_OVERWRITE, COLLISION_RENAME)

PathLike = Union[str, Path]


def _new_hasher(algorithm: str):
    try:
        return hashlib.new(algorithm)
    except ValueError:
        raise ValueError(f"Unsupported hash algorithm: {algorithm}")


def calculate_content_hash(content: bytes, algorithm: str = DEFAULT_HASH_ALGORITHM) -> str:
    """
    Fingerprint an in-memory byte buffer.

    Args:
        content: Full file content
        algorithm: Hash algorithm (sha512 unless told otherwise)

    Returns:
        Lowercase hexadecimal digest
    """
    hash_func = _new_hasher(algorithm)
    hash_func.update(content)
    return hash_func.hexdigest()


def calculate_file_hash(
    file_path: PathLike,
    algorithm: str = DEFAULT_HASH_ALGORITHM,
    chunk_size: int = 8192
) -> str:
    """
    Calculate hash of a file on disk.

    Produces the same digest as calculate_content_hash() over the file's bytes.

    Args:
        file_path: Path to the file
        algorithm: Hash algorithm (md5, sha1, sha256, sha512, etc.)
        chunk_size: Size of chunks to read (bytes)

    Returns:
        Hexadecimal hash string

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If algorithm is unsupported
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"File not found: {file_path}")

    hash_func = _new_hasher(algorithm)

    with open(file_path, 'rb') as f:
        while chunk := f.read(chunk_size):
            hash_func.update(chunk)

    return hash_func.hexdigest()


def write_file_bytes(file_path: PathLike, content: bytes) -> None:
    """
    Write a buffer to disk and fsync it before returning.

    Existing files are truncated and overwritten.
    """
    with open(file_path, 'wb') as f:
        f.write(content)
        f.flush()
        os.fsync(f.fileno())


def _holds_content(path: Path, digest: str) -> bool:
    return calculate_file_hash(path) == digest


def resolve_collision_path(
    dest_path: PathLike,
    content: bytes,
    collision_strategy: str = COLLISION_OVERWRITE
) -> Path:
    """
    Decide where content destined for dest_path should actually be written.

    Args:
        dest_path: Preferred destination path
        content: Bytes about to be written
        collision_strategy: How to handle an existing file with other content
            - "overwrite": Write over it (last write wins)
            - "rename": Keep it and write to the first free
              "<stem>_<timestamp>[_<n>]<suffix>" name instead

    Returns:
        Path to write to. In rename mode this is never a file holding
        different content.

    Raises:
        OSError: If an existing file cannot be inspected (rename mode only)
    """
    if collision_strategy not in COLLISION_STRATEGIES:
        raise ValueError(f"Unknown collision strategy: {collision_strategy}")

    dest_path = Path(dest_path)

    if collision_strategy == COLLISION_OVERWRITE:
        return dest_path

    digest = calculate_content_hash(content)
    if not dest_path.exists() or _holds_content(dest_path, digest):
        return dest_path

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    stem = f"{dest_path.stem}_{timestamp}"
    renamed = dest_path.with_name(f"{stem}{dest_path.suffix}")
    counter = 1
    while renamed.exists() and not _holds_content(renamed, digest):
        renamed = dest_path.with_name(f"{stem}_{counter}{dest_path.suffix}")
        counter += 1

    logger.info(f"Renaming to avoid collision: {renamed.name}")
    return renamed
