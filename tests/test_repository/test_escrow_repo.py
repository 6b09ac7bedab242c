import unittest
from decimal import Decimal
from unittest.mock import MagicMock
from botocore.exceptions import ClientError

from booking_ledger.repository.escrow_repo import DynamoEscrowService, COUNTER_KEY
from booking_ledger.models.escrow import EscrowStatus
from booking_ledger.utils.custom_exceptions import ExternalServiceError


def conditional_failure(operation="UpdateItem"):
    return ClientError(
        error_response={"Error": {"Code": "ConditionalCheckFailedException", "Message": "condition"}},
        operation_name=operation
    )


class TestDynamoEscrowService(unittest.TestCase):

    def setUp(self):
        self.table = MagicMock()
        self.escrow = DynamoEscrowService(self.table)

    def test_create_allocates_id_and_holds_funds(self):
        self.table.update_item.return_value = {"Attributes": {"next_id": Decimal("7")}}

        escrow_id = self.escrow.create("guest-1", "host-1", 1000, 200)

        self.assertEqual(escrow_id, 7)
        _, counter_kwargs = self.table.update_item.call_args
        self.assertEqual(counter_kwargs["Key"], COUNTER_KEY)
        self.assertEqual(counter_kwargs["UpdateExpression"], "ADD #next_id :one")

        _, put_kwargs = self.table.put_item.call_args
        item = put_kwargs["Item"]
        self.assertEqual(item["pk"], "ESCROW#7")
        self.assertEqual(item["guest"], "guest-1")
        self.assertEqual(item["host"], "host-1")
        self.assertEqual(item["amount"], 1000)
        self.assertEqual(item["deposit"], 200)
        self.assertEqual(item["escrow_status"], EscrowStatus.HELD.value)

    def test_create_collision_returns_none(self):
        self.table.update_item.return_value = {"Attributes": {"next_id": Decimal("7")}}
        self.table.put_item.side_effect = conditional_failure("PutItem")

        self.assertIsNone(self.escrow.create("guest-1", "host-1", 1000, 200))

    def test_create_client_error_raises(self):
        self.table.update_item.side_effect = ClientError(
            error_response={"Error": {"Message": "Dynamo failure"}},
            operation_name="UpdateItem"
        )

        with self.assertRaises(ExternalServiceError):
            self.escrow.create("guest-1", "host-1", 1000, 200)

        self.table.put_item.assert_not_called()

    def test_confirm_requires_held(self):
        self.assertTrue(self.escrow.confirm(7))

        _, kwargs = self.table.update_item.call_args
        self.assertEqual(kwargs["Key"], {"pk": "ESCROW#7", "sk": "DETAILS"})
        self.assertEqual(kwargs["UpdateExpression"], "SET #escrow_status = :new_value")
        self.assertEqual(
            kwargs["ConditionExpression"],
            "attribute_exists(pk) AND #escrow_status IN (:from0)",
        )
        self.assertEqual(
            kwargs["ExpressionAttributeValues"],
            {":new_value": "CONFIRMED", ":from0": "HELD"},
        )
        self.assertNotIn("#fee", kwargs["ExpressionAttributeNames"])

    def test_cancel_records_fee(self):
        self.assertTrue(self.escrow.cancel(7, 100))

        _, kwargs = self.table.update_item.call_args
        self.assertEqual(
            kwargs["UpdateExpression"], "SET #escrow_status = :new_value, #fee = :fee"
        )
        self.assertEqual(
            kwargs["ConditionExpression"],
            "attribute_exists(pk) AND #escrow_status IN (:from0, :from1)",
        )
        self.assertEqual(kwargs["ExpressionAttributeValues"][":fee"], 100)
        self.assertEqual(kwargs["ExpressionAttributeValues"][":new_value"], "CANCELLED")

    def test_release_requires_confirmed(self):
        self.assertTrue(self.escrow.release(7, 50))

        _, kwargs = self.table.update_item.call_args
        self.assertEqual(kwargs["ExpressionAttributeValues"][":from0"], "CONFIRMED")
        self.assertEqual(kwargs["ExpressionAttributeValues"][":new_value"], "RELEASED")

    def test_transition_from_wrong_status_returns_false(self):
        self.table.update_item.side_effect = conditional_failure()

        self.assertFalse(self.escrow.release(7, 50))

    def test_transition_client_error_raises(self):
        self.table.update_item.side_effect = ClientError(
            error_response={"Error": {"Message": "Dynamo failure"}},
            operation_name="UpdateItem"
        )

        with self.assertRaises(ExternalServiceError):
            self.escrow.confirm(7)

    def test_get_escrow(self):
        self.table.get_item.return_value = {
            "Item": {
                "pk": "ESCROW#7",
                "sk": "DETAILS",
                "guest": "guest-1",
                "host": "host-1",
                "amount": Decimal("1000"),
                "deposit": Decimal("200"),
                "escrow_status": "CANCELLED",
                "fee": Decimal("100"),
            }
        }

        escrow = self.escrow.get_escrow(7)

        self.assertEqual(escrow.escrow_id, 7)
        self.assertEqual(escrow.amount, 1000)
        self.assertEqual(escrow.status, EscrowStatus.CANCELLED)
        self.assertEqual(escrow.fee, 100)

    def test_get_escrow_missing(self):
        self.table.get_item.return_value = {}

        self.assertIsNone(self.escrow.get_escrow(7))


if __name__ == "__main__":
    unittest.main()
