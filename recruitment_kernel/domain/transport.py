"""
Message transport protocol (``recruitment_kernel.domain.transport``).

The chat transport is an external collaborator.  The kernel needs exactly
three capabilities from it: create / fetch / edit a rendered message by
``(channel, message)`` identity, and attach a reaction marker.  Bindings
implement this protocol and wrap their own failures in ``TransportError``
(``SurfaceUnavailableError`` when the channel or message is gone).

Every call is expected to return or raise within the binding's own bounded
timeout.
"""

from __future__ import annotations

from typing import Protocol

from recruitment_kernel.domain.records import SurfaceRef
from recruitment_kernel.domain.views import RenderedView


class MessageTransport(Protocol):
    """Pluggable interface to the chat transport."""

    def send_message(self, channel_id: str, view: RenderedView) -> SurfaceRef:
        """Post a new message and return its identity."""
        ...

    def fetch_message(self, ref: SurfaceRef) -> RenderedView | None:
        """Return what the message currently shows, or None if it is gone."""
        ...

    def edit_message(self, ref: SurfaceRef, view: RenderedView) -> None:
        """Replace the message's embeds and affordance rows."""
        ...

    def add_reaction(self, ref: SurfaceRef, marker: str) -> None:
        """Attach a reaction marker to the message."""
        ...
