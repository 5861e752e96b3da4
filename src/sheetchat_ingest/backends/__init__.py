"""Concrete collaborator implementations for sheetchat-ingest.

``HttpIngestionBackend`` talks to the remote service with ``httpx``;
``OpenpyxlWorkbookHost`` serves the host capability interface from an
``.xlsx`` file.
"""

from __future__ import annotations

from sheetchat_ingest.backends.http import HttpIngestionBackend
from sheetchat_ingest.backends.openpyxl_host import OpenpyxlWorkbookHost

__all__ = [
    "HttpIngestionBackend",
    "OpenpyxlWorkbookHost",
]
