"""bucketify.storage_api -- storage REST transport and endpoint wrappers.

This sub-package provides:

* :mod:`.transport` -- single-attempt HTTP transport with project/key headers.
* :mod:`.files` -- file create / delete / get wrappers.
* :mod:`.connectivity` -- reachability probes.
"""

from __future__ import annotations

from .connectivity import AsyncConnectivityProbe, ConnectivityProbe
from .files import AsyncFileAPI, FileAPI
from .transport import AsyncStorageTransport, StorageTransport

__all__ = [
    "AsyncConnectivityProbe",
    "AsyncFileAPI",
    "AsyncStorageTransport",
    "ConnectivityProbe",
    "FileAPI",
    "StorageTransport",
]
