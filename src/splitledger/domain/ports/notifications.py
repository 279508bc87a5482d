"""Port for outbound notifications."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class NotificationSink(Protocol):
    """Fire-and-forget message delivery; returns whether the message was accepted."""

    def send(self, to_address: str, subject: str, body: str) -> bool: ...
