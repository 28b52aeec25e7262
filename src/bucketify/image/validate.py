"""Image format validation.

Classifies a local path as an accepted image type by its extension before
the upload pipeline spends time decoding or sending it.
"""

from __future__ import annotations

import re

IMAGE_EXTENSIONS: frozenset[str] = frozenset({"jpg", "jpeg", "png", "webp", "heic"})
"""Extensions (lower-case, without the dot) accepted by the upload pipeline."""

# Both separators are honoured so Windows-style paths classify the same way.
_SEPARATOR_RE = re.compile(r"[\\/]")


def file_extension(path: str) -> str:
    """Return the lower-cased text after the last dot of the final path segment.

    Returns an empty string when the final segment has no dot.
    """
    name = _SEPARATOR_RE.split(path)[-1]
    stem, dot, ext = name.rpartition(".")
    if not dot:
        return ""
    return ext.lower()


def is_image(path: str) -> bool:
    """Return ``True`` if *path* has an accepted image extension.

    The check is purely lexical: the file is neither opened nor required
    to exist.

    Parameters
    ----------
    path:
        A local file path.

    Returns
    -------
    bool
        ``True`` for ``jpg``, ``jpeg``, ``png``, ``webp`` and ``heic``
        (any case), ``False`` otherwise.
    """
    return file_extension(path) in IMAGE_EXTENSIONS
