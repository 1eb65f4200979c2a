from __future__ import annotations

from abc import ABC, abstractmethod

from ..models import DeliveryResult


class MessageTransport(ABC):
    name: str

    @abstractmethod
    def send(self, recipient: str, message: str) -> DeliveryResult:
        raise NotImplementedError
