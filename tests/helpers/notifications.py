"""In-memory notification sink."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class RecordingSink:
    fail_for: set[str] = field(default_factory=set[str])
    sent: list[tuple[str, str, str]] = field(default_factory=list[tuple[str, str, str]])

    def send(self, to_address: str, subject: str, body: str) -> bool:
        if to_address in self.fail_for:
            return False
        self.sent.append((to_address, subject, body))
        return True

    def recipients(self) -> list[str]:
        return sorted(to for to, _subject, _body in self.sent)
