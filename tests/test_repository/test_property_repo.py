import unittest
from unittest.mock import MagicMock
from botocore.exceptions import ClientError

from booking_ledger.repository.property_repo import DynamoPropertyDirectory
from booking_ledger.utils.custom_exceptions import ExternalServiceError


class TestDynamoPropertyDirectory(unittest.TestCase):

    def setUp(self):
        self.table = MagicMock()
        self.directory = DynamoPropertyDirectory(self.table)

    def test_add_property(self):
        self.directory.add_property(1, "host-1")

        self.table.put_item.assert_called_once_with(
            Item={"pk": "PROPERTY#1", "sk": "DETAILS", "owner": "host-1"}
        )

    def test_resolve_success(self):
        self.table.get_item.return_value = {
            "Item": {"pk": "PROPERTY#1", "sk": "DETAILS", "owner": "host-1"}
        }

        owner = self.directory.resolve(1)

        self.table.get_item.assert_called_once_with(
            Key={"pk": "PROPERTY#1", "sk": "DETAILS"}
        )
        self.assertEqual(owner, "host-1")

    def test_resolve_missing_property(self):
        self.table.get_item.return_value = {}

        self.assertIsNone(self.directory.resolve(1))

    def test_resolve_client_error(self):
        self.table.get_item.side_effect = ClientError(
            error_response={"Error": {"Message": "Dynamo failure"}},
            operation_name="GetItem"
        )

        with self.assertRaises(ExternalServiceError) as ctx:
            self.directory.resolve(1)

        self.assertIn("Dynamo failure", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
