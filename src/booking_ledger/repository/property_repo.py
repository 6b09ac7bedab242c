from botocore.exceptions import ClientError
import logging
from typing import Optional
from typing import TYPE_CHECKING

from booking_ledger.services.collaborators import PropertyDirectory
from booking_ledger.utils.custom_exceptions import ExternalServiceError
from booking_ledger.utils.dynamo_errors import error_message

if TYPE_CHECKING:
    from types_boto3_dynamodb.service_resource import Table
else:
    Table = object


logger = logging.getLogger(__name__)


class DynamoPropertyDirectory(PropertyDirectory):
    def __init__(self, table: Table):
        self.table = table

    def add_property(self, property_id: int, owner: str):
        try:
            self.table.put_item(
                Item={
                    "pk": f"PROPERTY#{property_id}",
                    "sk": "DETAILS",
                    "owner": owner,
                }
            )
        except ClientError as err:
            logger.error(f"Error adding property {property_id}: {error_message(err)}")
            raise ExternalServiceError("property directory", error_message(err)) from err

    def resolve(self, property_id: int) -> Optional[str]:
        try:
            response = self.table.get_item(
                Key={"pk": f"PROPERTY#{property_id}", "sk": "DETAILS"}
            )
        except ClientError as err:
            logger.error(f"Error resolving property {property_id}: {error_message(err)}")
            raise ExternalServiceError("property directory", error_message(err)) from err

        item = response.get("Item")
        if not item:
            return None
        return item.get("owner") or None
