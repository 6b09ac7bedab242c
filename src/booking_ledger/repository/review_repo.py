from botocore.exceptions import ClientError
import logging
from typing import Optional
from typing import TYPE_CHECKING

from booking_ledger.services.collaborators import ReviewStore
from booking_ledger.utils.custom_exceptions import ExternalServiceError
from booking_ledger.utils.dynamo_errors import error_message, is_conditional_failure

if TYPE_CHECKING:
    from types_boto3_dynamodb.service_resource import Table
else:
    Table = object


logger = logging.getLogger(__name__)


class DynamoReviewStore(ReviewStore):
    def __init__(self, table: Table):
        self.table = table

    def record(self, booking_id: int, rating: int, comment: str) -> bool:
        try:
            self.table.put_item(
                Item={
                    "pk": f"BOOKING#{booking_id}",
                    "sk": "REVIEW",
                    "rating": rating,
                    "comment": comment,
                },
                ConditionExpression="attribute_not_exists(pk)",
            )
        except ClientError as err:
            if is_conditional_failure(err):
                logger.warning(f"Review for booking {booking_id} already recorded")
                return False
            logger.error(f"Error recording review for booking {booking_id}: {error_message(err)}")
            raise ExternalServiceError("review store", error_message(err)) from err
        return True

    def get_review(self, booking_id: int) -> Optional[dict]:
        try:
            response = self.table.get_item(
                Key={"pk": f"BOOKING#{booking_id}", "sk": "REVIEW"}
            )
        except ClientError as err:
            logger.error(f"Error retrieving review for booking {booking_id}: {error_message(err)}")
            raise ExternalServiceError("review store", error_message(err)) from err

        item = response.get("Item")
        if not item:
            return None
        return {"rating": int(item["rating"]), "comment": item.get("comment", "")}
