from botocore.exceptions import ClientError
import logging
from dataclasses import replace
from typing import Dict, List, Optional
from boto3.dynamodb.conditions import Key
from typing import TYPE_CHECKING

from booking_ledger.models.bookings import Booking, BookingStatus, BookingUpdate
from booking_ledger.utils.custom_exceptions import BookingConflict, ExternalServiceError
from booking_ledger.utils.dynamo_errors import error_message, is_transaction_cancelled

if TYPE_CHECKING:
    from types_boto3_dynamodb.service_resource import Table
    from types_boto3_dynamodb import DynamoDBClient
else:
    Table = object
    DynamoDBClient = object

logger = logging.getLogger(__name__)

COUNTER_KEY = {"pk": "COUNTER#BOOKING", "sk": "DETAILS"}


class BookingRepository:
    """In-process booking store owned by a single ledger instance.

    Holds the bookings by id, the append-only per-property id index, the
    latest transition per booking and the next-id counter.
    """

    def __init__(self, first_booking_id: int = 1):
        self._bookings: Dict[int, Booking] = {}
        self._by_property: Dict[int, List[int]] = {}
        self._updates: Dict[int, BookingUpdate] = {}
        self._next_booking_id = first_booking_id

    @property
    def next_booking_id(self) -> int:
        return self._next_booking_id

    def count(self) -> int:
        return len(self._bookings)

    def add_booking(self, booking: Booking):
        if booking.booking_id != self._next_booking_id:
            raise BookingConflict(
                f"booking id {booking.booking_id} does not match next id {self._next_booking_id}"
            )
        self._bookings[booking.booking_id] = booking
        self._by_property.setdefault(booking.property_id, []).append(booking.booking_id)
        self._next_booking_id += 1
        logger.debug(f"Stored booking {booking.booking_id} for property {booking.property_id}")

    def get_booking_by_id(self, booking_id: int) -> Optional[Booking]:
        booking = self._bookings.get(booking_id)
        if booking is None:
            return None
        return replace(booking)

    def get_property_booking_ids(self, property_id: int) -> List[int]:
        return list(self._by_property.get(property_id, []))

    def get_property_bookings(self, property_id: int) -> List[Booking]:
        return [
            replace(self._bookings[b_id]) for b_id in self._by_property.get(property_id, [])
        ]

    def update_booking_status(
        self,
        booking_id: int,
        status: BookingStatus,
        timestamp: int,
        updater: str,
        expected_status: Optional[BookingStatus] = None,
    ) -> Booking:
        booking = self._bookings[booking_id]
        if expected_status is not None and booking.status != expected_status:
            raise BookingConflict(
                f"booking {booking_id} is {booking.status.value}, expected {expected_status.value}"
            )
        updated = replace(booking, status=status, timestamp=timestamp)
        self._bookings[booking_id] = updated
        self._updates[booking_id] = BookingUpdate(
            status=status, timestamp=timestamp, updater=updater
        )
        return replace(updated)

    def set_review(self, booking_id: int, rating: int, comment: str) -> Booking:
        booking = self._bookings[booking_id]
        if booking.has_review:
            raise BookingConflict(f"booking {booking_id} already has a review")
        updated = replace(booking, review_rating=rating, review_comment=comment)
        self._bookings[booking_id] = updated
        return replace(updated)

    def get_update(self, booking_id: int) -> Optional[BookingUpdate]:
        update = self._updates.get(booking_id)
        if update is None:
            return None
        return replace(update)


class DynamoBookingRepository:
    """Booking store shared through the single DynamoDB table.

    Every booking is written twice, as ``BOOKING#<id>``/``DETAILS`` and as
    ``PROPERTY#<id>``/``BOOKING#<id>`` for availability lookups. A new booking
    is only written if the ``COUNTER#BOOKING`` item still holds the id the
    ledger read before its availability check, so two writers that saw the
    same state cannot both commit.
    """

    def __init__(self, table: Table, client: DynamoDBClient = None, first_booking_id: int = 1):
        self.table = table
        self.client = client if client else table.meta.client
        self.first_booking_id = first_booking_id

    @property
    def next_booking_id(self) -> int:
        try:
            response = self.table.get_item(Key=COUNTER_KEY)
        except ClientError as err:
            logger.error(f"Error reading booking counter: {error_message(err)}")
            raise ExternalServiceError("booking store", error_message(err)) from err

        item = response.get("Item")
        if not item:
            return self.first_booking_id
        return int(item["next_id"])

    def count(self) -> int:
        return self.next_booking_id - self.first_booking_id

    def add_booking(self, booking: Booking):
        booking_id = booking.booking_id
        counter_update = {
            "TableName": self.table.name,
            "Key": COUNTER_KEY,
            "UpdateExpression": "SET #next_id = :next",
            "ExpressionAttributeNames": {"#next_id": "next_id"},
            "ExpressionAttributeValues": {":next": booking_id + 1},
        }
        if booking_id == self.first_booking_id:
            counter_update["ConditionExpression"] = "attribute_not_exists(pk)"
        else:
            counter_update["ConditionExpression"] = "#next_id = :expected"
            counter_update["ExpressionAttributeValues"][":expected"] = booking_id

        attributes = self._to_item(booking)
        self._transact(
            f"creating booking {booking_id}",
            [
                {"Update": counter_update},
                {
                    "Put": {
                        "TableName": self.table.name,
                        "Item": {"pk": f"BOOKING#{booking_id}", "sk": "DETAILS", **attributes},
                        "ConditionExpression": "attribute_not_exists(pk)",
                    }
                },
                {
                    "Put": {
                        "TableName": self.table.name,
                        "Item": {
                            "pk": f"PROPERTY#{booking.property_id}",
                            "sk": f"BOOKING#{booking_id}",
                            **attributes,
                        },
                    }
                },
            ],
        )
        logger.info(f"Stored booking {booking_id} for property {booking.property_id}")

    def get_booking_by_id(self, booking_id: int) -> Optional[Booking]:
        try:
            response = self.table.get_item(
                Key={"pk": f"BOOKING#{booking_id}", "sk": "DETAILS"}
            )
        except ClientError as err:
            logger.error(f"Error retrieving booking {booking_id}: {error_message(err)}")
            raise ExternalServiceError("booking store", error_message(err)) from err

        item = response.get("Item")
        if not item:
            return None
        return self._to_domain(item)

    def get_property_booking_ids(self, property_id: int) -> List[int]:
        return [booking.booking_id for booking in self.get_property_bookings(property_id)]

    def get_property_bookings(self, property_id: int) -> List[Booking]:
        query = {
            "KeyConditionExpression": Key("pk").eq(f"PROPERTY#{property_id}")
            & Key("sk").begins_with("BOOKING#")
        }
        items = []
        try:
            while True:
                response = self.table.query(**query)
                items.extend(response.get("Items", []))
                if "LastEvaluatedKey" not in response:
                    break
                query["ExclusiveStartKey"] = response["LastEvaluatedKey"]
        except ClientError as err:
            logger.error(f"Error retrieving bookings of property {property_id}: {error_message(err)}")
            raise ExternalServiceError("booking store", error_message(err)) from err

        # sort keys compare as strings, ids are numbers
        return sorted((self._to_domain(item) for item in items), key=lambda b: b.booking_id)

    def update_booking_status(
        self,
        booking_id: int,
        status: BookingStatus,
        timestamp: int,
        updater: str,
        expected_status: Optional[BookingStatus] = None,
    ) -> Booking:
        booking = self._require(booking_id)
        names = {"#booking_status": "booking_status", "#status_timestamp": "status_timestamp"}
        values = {":new_status": status.value, ":timestamp": timestamp}
        condition = "attribute_exists(pk)"
        if expected_status is not None:
            condition = "#booking_status = :expected"
            values[":expected"] = expected_status.value

        self._transact(
            f"moving booking {booking_id} to {status.value}",
            [
                {
                    "Update": {
                        "TableName": self.table.name,
                        "Key": {"pk": f"BOOKING#{booking_id}", "sk": "DETAILS"},
                        "UpdateExpression": "SET #booking_status = :new_status, #status_timestamp = :timestamp",
                        "ConditionExpression": condition,
                        "ExpressionAttributeNames": names,
                        "ExpressionAttributeValues": values,
                    }
                },
                {
                    "Update": {
                        "TableName": self.table.name,
                        "Key": {
                            "pk": f"PROPERTY#{booking.property_id}",
                            "sk": f"BOOKING#{booking_id}",
                        },
                        "UpdateExpression": "SET #booking_status = :new_status, #status_timestamp = :timestamp",
                        "ExpressionAttributeNames": names,
                        "ExpressionAttributeValues": {
                            ":new_status": status.value,
                            ":timestamp": timestamp,
                        },
                    }
                },
                {
                    "Put": {
                        "TableName": self.table.name,
                        "Item": {
                            "pk": f"BOOKING#{booking_id}",
                            "sk": "UPDATE",
                            "booking_status": status.value,
                            "status_timestamp": timestamp,
                            "updater": updater,
                        },
                    }
                },
            ],
        )
        return replace(booking, status=status, timestamp=timestamp)

    def set_review(self, booking_id: int, rating: int, comment: str) -> Booking:
        booking = self._require(booking_id)
        update = {
            "UpdateExpression": "SET review_rating = :rating, review_comment = :comment",
            "ExpressionAttributeValues": {":rating": rating, ":comment": comment},
        }
        self._transact(
            f"reviewing booking {booking_id}",
            [
                {
                    "Update": {
                        "TableName": self.table.name,
                        "Key": {"pk": f"BOOKING#{booking_id}", "sk": "DETAILS"},
                        "ConditionExpression": "attribute_exists(pk) AND attribute_not_exists(review_rating)",
                        **update,
                    }
                },
                {
                    "Update": {
                        "TableName": self.table.name,
                        "Key": {
                            "pk": f"PROPERTY#{booking.property_id}",
                            "sk": f"BOOKING#{booking_id}",
                        },
                        **update,
                    }
                },
            ],
        )
        return replace(booking, review_rating=rating, review_comment=comment)

    def get_update(self, booking_id: int) -> Optional[BookingUpdate]:
        try:
            response = self.table.get_item(
                Key={"pk": f"BOOKING#{booking_id}", "sk": "UPDATE"}
            )
        except ClientError as err:
            logger.error(f"Error retrieving update of booking {booking_id}: {error_message(err)}")
            raise ExternalServiceError("booking store", error_message(err)) from err

        item = response.get("Item")
        if not item:
            return None
        return BookingUpdate(
            status=BookingStatus(item["booking_status"]),
            timestamp=int(item["status_timestamp"]),
            updater=item["updater"],
        )

    def _require(self, booking_id: int) -> Booking:
        booking = self.get_booking_by_id(booking_id)
        if booking is None:
            raise BookingConflict(f"booking {booking_id} is not stored")
        return booking

    def _transact(self, action: str, items: list):
        try:
            self.client.transact_write_items(TransactItems=items)
        except ClientError as err:
            if is_transaction_cancelled(err):
                logger.warning(f"Conflict while {action}: {error_message(err)}")
                raise BookingConflict(f"conflict while {action}") from err
            logger.error(f"Error while {action}: {error_message(err)}")
            raise ExternalServiceError("booking store", error_message(err)) from err

    @staticmethod
    def _to_item(booking: Booking) -> dict:
        item = {
            "booking_id": booking.booking_id,
            "property_id": booking.property_id,
            "host": booking.host,
            "guest": booking.guest,
            "start_date": booking.start_date,
            "end_date": booking.end_date,
            "total_cost": booking.total_cost,
            "deposit": booking.deposit,
            "escrow_id": booking.escrow_id,
            "cancellation_fee": booking.cancellation_fee,
            "status_timestamp": booking.timestamp,
            "booking_status": booking.status.value,
        }
        if booking.review_rating is not None:
            item["review_rating"] = booking.review_rating
            item["review_comment"] = booking.review_comment
        return item

    @staticmethod
    def _to_domain(item: dict) -> Booking:
        rating = item.get("review_rating")
        return Booking(
            booking_id=int(item["booking_id"]),
            property_id=int(item["property_id"]),
            host=item["host"],
            guest=item["guest"],
            start_date=int(item["start_date"]),
            end_date=int(item["end_date"]),
            total_cost=int(item["total_cost"]),
            deposit=int(item["deposit"]),
            escrow_id=int(item["escrow_id"]),
            cancellation_fee=int(item["cancellation_fee"]),
            timestamp=int(item["status_timestamp"]),
            status=BookingStatus(item["booking_status"]),
            review_rating=int(rating) if rating is not None else None,
            review_comment=item.get("review_comment"),
        )
