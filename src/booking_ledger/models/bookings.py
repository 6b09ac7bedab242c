from enum import Enum
from dataclasses import dataclass
from typing import Dict, Optional, Set


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


BOOKING_TRANSITIONS: Dict[BookingStatus, Set[BookingStatus]] = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.CANCELLED: set(),
    BookingStatus.COMPLETED: set(),
}


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in BOOKING_TRANSITIONS[BookingStatus(current)]


@dataclass
class Booking:
    booking_id: int
    property_id: int
    host: str
    guest: str
    start_date: int
    end_date: int
    total_cost: int
    deposit: int
    escrow_id: int
    cancellation_fee: int
    timestamp: int
    status: BookingStatus = BookingStatus.PENDING

    review_rating: Optional[int] = None
    review_comment: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status != BookingStatus.CANCELLED

    @property
    def has_review(self) -> bool:
        return self.review_rating is not None

    def overlaps(self, start: int, end: int) -> bool:
        # [start, end) against [start_date, end_date); touching ends do not overlap
        return not (start >= self.end_date or end <= self.start_date)


@dataclass
class BookingUpdate:
    status: BookingStatus
    timestamp: int
    updater: str

