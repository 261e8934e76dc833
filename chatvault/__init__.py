"""
Chatvault - HTTP backend for chat transcripts and per-user chat lists.

Exposes a FastAPI application (``chatvault.main:app``) that stores chats,
keeps a per-user index of chat summaries, and issues upload credentials
for the image CDN.

Run locally:
    python -m chatvault.main
"""

from chatvault.version import VERSION

__version__ = VERSION
__all__ = [
    "VERSION",
    "__version__",
]
