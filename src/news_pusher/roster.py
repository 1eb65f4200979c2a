from __future__ import annotations

import re
import threading
from collections.abc import Iterable
from typing import Protocol

E164_RE = re.compile(r"^\+[1-9]\d{1,14}$")


class InvalidPhoneNumberError(ValueError):
    pass


class AlreadySubscribedError(ValueError):
    pass


def is_valid_phone_number(value: str) -> bool:
    return bool(E164_RE.match((value or "").strip()))


class RosterProvider(Protocol):
    def current_recipients(self) -> list[str]:
        ...


class InMemoryRoster:
    """Subscriber list kept for the lifetime of the process."""

    def __init__(self, recipients: Iterable[str] = ()):
        self._lock = threading.Lock()
        self._recipients: list[str] = []
        for phone in recipients:
            self.add(phone)

    def add(self, phone: str) -> str:
        normalized = (phone or "").strip()
        if not is_valid_phone_number(normalized):
            raise InvalidPhoneNumberError(
                "Invalid phone number format. Use E.164 format (e.g., +1234567890)"
            )
        with self._lock:
            if normalized in self._recipients:
                raise AlreadySubscribedError("This number is already subscribed")
            self._recipients.append(normalized)
        return normalized

    def remove(self, phone: str) -> bool:
        normalized = (phone or "").strip()
        with self._lock:
            if normalized not in self._recipients:
                return False
            self._recipients.remove(normalized)
            return True

    def current_recipients(self) -> list[str]:
        with self._lock:
            return list(self._recipients)

    def __contains__(self, phone: object) -> bool:
        with self._lock:
            return isinstance(phone, str) and phone.strip() in self._recipients

    def __len__(self) -> int:
        with self._lock:
            return len(self._recipients)
