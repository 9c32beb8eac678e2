# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""File extension helpers shared by the web asset handlers."""

from typing import Any, Optional


def get_extension(path: Any) -> Optional[str]:
    """Return the extension of a file name, dot included.

    Splits on "." and returns the last segment prefixed with a dot when there
    is more than one segment. Returns None when the name has no dot.
    Non-string values, e.g. a number read from YAML, are converted with str().

    Example:
        >>> get_extension("photo.Final.JPG")
        '.JPG'
        >>> get_extension("README") is None
        True
        >>> get_extension(2024) is None
        True
    """
    tokens = str(path).split(".")
    if len(tokens) > 1:
        return "." + tokens[-1]
    return None

