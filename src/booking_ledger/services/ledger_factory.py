import os
import logging
from typing import Optional

from boto3 import resource

from booking_ledger.repository.booking_repo import DynamoBookingRepository
from booking_ledger.repository.escrow_repo import DynamoEscrowService
from booking_ledger.repository.identity_repo import DynamoIdentityRegistry
from booking_ledger.repository.property_repo import DynamoPropertyDirectory
from booking_ledger.repository.review_repo import DynamoReviewStore
from booking_ledger.schemas.settings import LedgerSettings
from booking_ledger.services.booking_ledger import BookingLedger
from booking_ledger.services.booking_service import BookingService

logger = logging.getLogger(__name__)

DEFAULT_REGION = "ap-south-1"


def build_ledger(table=None, settings: Optional[LedgerSettings] = None) -> BookingLedger:
    """Wire a ledger whose bookings and collaborators live in the DynamoDB table named by TABLE_NAME."""
    if table is None:
        table_name = os.environ.get("TABLE_NAME")
        if not table_name:
            raise RuntimeError("TABLE_NAME environment variable is not set")
        region = os.environ.get("AWS_REGION", DEFAULT_REGION)
        table = resource("dynamodb", region_name=region).Table(table_name)

    settings = settings or LedgerSettings.from_env()
    service = BookingService(
        booking_repo=DynamoBookingRepository(table),
        property_directory=DynamoPropertyDirectory(table),
        identity_registry=DynamoIdentityRegistry(table),
        escrow_service=DynamoEscrowService(table),
        review_store=DynamoReviewStore(table),
        settings=settings,
    )
    logger.info(
        f"Ledger ready: platform fee {settings.platform_fee_rate}%, "
        f"cancellation fee {settings.cancellation_fee_rate}%, "
        f"capacity {settings.max_bookings}"
    )
    return BookingLedger(service)
