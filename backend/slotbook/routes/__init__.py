# backend/slotbook/routes/__init__.py
"""HTTP routers mounted by slotbook.main under /api/v1."""

from . import appointments, availability

__all__ = ["appointments", "availability"]
