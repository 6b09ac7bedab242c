from botocore.exceptions import ClientError
import logging
from typing import Iterable, Optional
from typing import TYPE_CHECKING

from booking_ledger.models.escrow import Escrow, EscrowStatus
from booking_ledger.services.collaborators import EscrowService
from booking_ledger.utils.custom_exceptions import ExternalServiceError
from booking_ledger.utils.dynamo_errors import error_message, is_conditional_failure

if TYPE_CHECKING:
    from types_boto3_dynamodb.service_resource import Table
else:
    Table = object


logger = logging.getLogger(__name__)

COUNTER_KEY = {"pk": "COUNTER#ESCROW", "sk": "DETAILS"}


class DynamoEscrowService(EscrowService):
    """Escrow records kept in the shared table.

    Escrow ids come from an atomic counter item. Each status change is a
    conditional update, so a transition from the wrong status returns False.
    """

    def __init__(self, table: Table):
        self.table = table

    def create(self, guest: str, host: str, amount: int, deposit: int) -> Optional[int]:
        try:
            response = self.table.update_item(
                Key=COUNTER_KEY,
                UpdateExpression="ADD #next_id :one",
                ExpressionAttributeNames={"#next_id": "next_id"},
                ExpressionAttributeValues={":one": 1},
                ReturnValues="UPDATED_NEW",
            )
            escrow_id = int(response["Attributes"]["next_id"])

            self.table.put_item(
                Item={
                    "pk": f"ESCROW#{escrow_id}",
                    "sk": "DETAILS",
                    "guest": guest,
                    "host": host,
                    "amount": amount,
                    "deposit": deposit,
                    "escrow_status": EscrowStatus.HELD.value,
                    "fee": 0,
                },
                ConditionExpression="attribute_not_exists(pk)",
            )
        except ClientError as err:
            if is_conditional_failure(err):
                logger.warning(f"Escrow id collision while holding funds for {guest}")
                return None
            logger.error(f"Error creating escrow for {guest} -> {host}: {error_message(err)}")
            raise ExternalServiceError("escrow", error_message(err)) from err

        logger.info(f"Escrow {escrow_id} holding {amount} for {guest} -> {host}")
        return escrow_id

    def confirm(self, escrow_id: int) -> bool:
        return self._transition(
            escrow_id, EscrowStatus.CONFIRMED, allowed=[EscrowStatus.HELD]
        )

    def cancel(self, escrow_id: int, fee: int) -> bool:
        return self._transition(
            escrow_id,
            EscrowStatus.CANCELLED,
            allowed=[EscrowStatus.HELD, EscrowStatus.CONFIRMED],
            fee=fee,
        )

    def release(self, escrow_id: int, fee: int) -> bool:
        return self._transition(
            escrow_id, EscrowStatus.RELEASED, allowed=[EscrowStatus.CONFIRMED], fee=fee
        )

    def get_escrow(self, escrow_id: int) -> Optional[Escrow]:
        try:
            response = self.table.get_item(
                Key={"pk": f"ESCROW#{escrow_id}", "sk": "DETAILS"}
            )
        except ClientError as err:
            logger.error(f"Error retrieving escrow {escrow_id}: {error_message(err)}")
            raise ExternalServiceError("escrow", error_message(err)) from err

        item = response.get("Item")
        if not item:
            return None

        return Escrow(
            escrow_id=escrow_id,
            guest=item["guest"],
            host=item["host"],
            amount=int(item["amount"]),
            deposit=int(item["deposit"]),
            status=EscrowStatus(item["escrow_status"]),
            fee=int(item.get("fee", 0)),
        )

    def _transition(
        self,
        escrow_id: int,
        status: EscrowStatus,
        allowed: Iterable[EscrowStatus],
        fee: Optional[int] = None,
    ) -> bool:
        allowed = list(allowed)
        placeholders = {f":from{i}": s.value for i, s in enumerate(allowed)}
        update_expression = "SET #escrow_status = :new_value"
        names = {"#escrow_status": "escrow_status"}
        values = {":new_value": status.value, **placeholders}
        if fee is not None:
            update_expression += ", #fee = :fee"
            names["#fee"] = "fee"
            values[":fee"] = fee

        try:
            self.table.update_item(
                Key={"pk": f"ESCROW#{escrow_id}", "sk": "DETAILS"},
                UpdateExpression=update_expression,
                ConditionExpression=(
                    f"attribute_exists(pk) AND #escrow_status IN ({', '.join(placeholders)})"
                ),
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
            )
        except ClientError as err:
            if is_conditional_failure(err):
                logger.warning(f"Escrow {escrow_id} cannot move to {status.value}")
                return False
            logger.error(f"Error updating escrow {escrow_id} to {status.value}: {error_message(err)}")
            raise ExternalServiceError("escrow", error_message(err)) from err

        logger.info(f"Escrow {escrow_id} {status.value.lower()}")
        return True
