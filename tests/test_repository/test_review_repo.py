import unittest
from decimal import Decimal
from unittest.mock import MagicMock
from botocore.exceptions import ClientError

from booking_ledger.repository.review_repo import DynamoReviewStore
from booking_ledger.utils.custom_exceptions import ExternalServiceError


class TestDynamoReviewStore(unittest.TestCase):

    def setUp(self):
        self.table = MagicMock()
        self.store = DynamoReviewStore(self.table)

    def test_record_success(self):
        self.assertTrue(self.store.record(4, 5, "Great stay!"))

        _, kwargs = self.table.put_item.call_args
        self.assertEqual(kwargs["Item"]["pk"], "BOOKING#4")
        self.assertEqual(kwargs["Item"]["sk"], "REVIEW")
        self.assertEqual(kwargs["Item"]["rating"], 5)
        self.assertEqual(kwargs["Item"]["comment"], "Great stay!")
        self.assertEqual(kwargs["ConditionExpression"], "attribute_not_exists(pk)")

    def test_record_duplicate_returns_false(self):
        self.table.put_item.side_effect = ClientError(
            error_response={"Error": {"Code": "ConditionalCheckFailedException", "Message": "exists"}},
            operation_name="PutItem"
        )

        self.assertFalse(self.store.record(4, 5, "again"))

    def test_record_client_error_raises(self):
        self.table.put_item.side_effect = ClientError(
            error_response={"Error": {"Message": "Dynamo failure"}},
            operation_name="PutItem"
        )

        with self.assertRaises(ExternalServiceError):
            self.store.record(4, 5, "x")

    def test_get_review(self):
        self.table.get_item.return_value = {
            "Item": {"pk": "BOOKING#4", "sk": "REVIEW", "rating": Decimal("4"), "comment": "ok"}
        }

        self.assertEqual(self.store.get_review(4), {"rating": 4, "comment": "ok"})

    def test_get_review_missing(self):
        self.table.get_item.return_value = {}

        self.assertIsNone(self.store.get_review(4))


if __name__ == "__main__":
    unittest.main()
