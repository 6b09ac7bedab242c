from enum import Enum
from dataclasses import dataclass


class EscrowStatus(str, Enum):
    HELD = "HELD"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    RELEASED = "RELEASED"


@dataclass
class Escrow:
    escrow_id: int
    guest: str
    host: str
    amount: int
    deposit: int
    status: EscrowStatus = EscrowStatus.HELD
    fee: int = 0
