"""Utility functions and helpers for edgek8s."""
import logging
import os
import shutil
import uuid
from pathlib import Path
from typing import Union

logger = logging.getLogger("edgek8s.utils")

EXECUTABLE_PERMS = 0o744
NON_EXECUTABLE_PERMS = 0o644


def generate_token() -> str:
    """Generate a random token for cluster authentication.

    Returns:
        str: A random UUID4 string
    """
    return str(uuid.uuid4())


def copy_file(source: Union[str, Path], destination: Union[str, Path], mode: int = NON_EXECUTABLE_PERMS) -> None:
    """Copy a file and set its permissions.

    Args:
        source: Path of the file to copy
        destination: Path of the copy
        mode: File permissions of the copy

    Raises:
        OSError: If the file cannot be copied
    """
    try:
        shutil.copyfile(source, destination)
        os.chmod(destination, mode)
    except OSError as e:
        logger.error(f"Failed to copy {source} to {destination}: {e}")
        raise


def make_executable(path: Union[str, Path]) -> None:
    os.chmod(path, EXECUTABLE_PERMS)
