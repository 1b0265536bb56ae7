"""Storage for pending one-time codes.

Services talk to an ``OtpStore``; the in-memory version is what a single
process uses, and anything with the same three methods (a Redis wrapper, say)
can be passed in instead.
"""
from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class OtpEntry:
    email: str
    code: str
    expires_at: float
    pending_details: dict = field(default_factory=dict)

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class OtpStore:
    def get(self, email: str) -> Optional[OtpEntry]:
        raise NotImplementedError

    def set(self, email: str, entry: OtpEntry) -> None:
        raise NotImplementedError

    def delete(self, email: str) -> None:
        raise NotImplementedError


class InMemoryOtpStore(OtpStore):
    """Process-local dict. No locking: concurrent writers for one email race."""

    def __init__(self):
        self._entries: Dict[str, OtpEntry] = {}

    def get(self, email):
        return self._entries.get(email)

    def set(self, email, entry):
        self._entries[email] = entry

    def delete(self, email):
        self._entries.pop(email, None)

    def __len__(self):
        return len(self._entries)

    def __contains__(self, email):
        return email in self._entries
