"""Interfaces of the services the ledger consults during transitions.

Adapters report an ordinary failure through their return value (``None`` or
``False``). When the backing service itself cannot be reached they raise
``ExternalServiceError``; the ledger handles both the same way.
"""

from abc import ABC, abstractmethod
from typing import Optional

from booking_ledger.models.identity import IdentityStatus


class PropertyDirectory(ABC):
    @abstractmethod
    def resolve(self, property_id: int) -> Optional[str]:
        """Return the principal owning the property, or None if unknown."""


class IdentityRegistry(ABC):
    @abstractmethod
    def get_status(self, principal: str) -> Optional[IdentityStatus]:
        """Return the verification status of a principal, or None if unknown."""


class EscrowService(ABC):
    @abstractmethod
    def create(self, guest: str, host: str, amount: int, deposit: int) -> Optional[int]:
        """Hold funds for a booking.

        Returns:
            The new escrow id, or None when the escrow could not be opened.
        """

    @abstractmethod
    def confirm(self, escrow_id: int) -> bool:
        pass

    @abstractmethod
    def cancel(self, escrow_id: int, fee: int) -> bool:
        """Return held funds to the guest, keeping ``fee`` for the host."""

    @abstractmethod
    def release(self, escrow_id: int, fee: int) -> bool:
        """Pay the host, keeping ``fee`` for the platform."""


class ReviewStore(ABC):
    @abstractmethod
    def record(self, booking_id: int, rating: int, comment: str) -> bool:
        pass
