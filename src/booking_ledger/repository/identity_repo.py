from botocore.exceptions import ClientError
import logging
from typing import Optional
from typing import TYPE_CHECKING

from booking_ledger.models.identity import IdentityStatus
from booking_ledger.services.collaborators import IdentityRegistry
from booking_ledger.utils.custom_exceptions import ExternalServiceError
from booking_ledger.utils.dynamo_errors import error_message

if TYPE_CHECKING:
    from types_boto3_dynamodb.service_resource import Table
else:
    Table = object


logger = logging.getLogger(__name__)


class DynamoIdentityRegistry(IdentityRegistry):
    def __init__(self, table: Table):
        self.table = table

    def set_verified(self, principal: str, verified: bool = True):
        try:
            self.table.put_item(
                Item={
                    "pk": f"USER#{principal}",
                    "sk": "IDENTITY",
                    "verified": verified,
                }
            )
        except ClientError as err:
            logger.error(
                "couldn't store identity of %s. Error: %s",
                principal,
                error_message(err),
            )
            raise ExternalServiceError("identity registry", error_message(err)) from err

    def get_status(self, principal: str) -> Optional[IdentityStatus]:
        try:
            response = self.table.get_item(
                Key={"pk": f"USER#{principal}", "sk": "IDENTITY"}
            )
        except ClientError as err:
            logger.error(f"Error retrieving identity of {principal}: {error_message(err)}")
            raise ExternalServiceError("identity registry", error_message(err)) from err

        item = response.get("Item")
        if not item:
            return None

        return self._to_domain(item=item)

    @staticmethod
    def _to_domain(item: dict) -> IdentityStatus:
        return IdentityStatus(
            principal=item["pk"].split("#", 1)[1],
            verified=bool(item.get("verified", False)),
        )
