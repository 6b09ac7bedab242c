import unittest
from unittest.mock import MagicMock
from botocore.exceptions import ClientError

from booking_ledger.repository.identity_repo import DynamoIdentityRegistry
from booking_ledger.utils.custom_exceptions import ExternalServiceError


class TestDynamoIdentityRegistry(unittest.TestCase):

    def setUp(self):
        self.table = MagicMock()
        self.registry = DynamoIdentityRegistry(self.table)

    def test_set_verified(self):
        self.registry.set_verified("host-1")

        self.table.put_item.assert_called_once_with(
            Item={"pk": "USER#host-1", "sk": "IDENTITY", "verified": True}
        )

    def test_set_verified_client_error(self):
        self.table.put_item.side_effect = ClientError(
            error_response={"Error": {"Message": "Dynamo failure"}},
            operation_name="PutItem"
        )

        with self.assertRaises(ExternalServiceError):
            self.registry.set_verified("host-1", False)

    def test_get_status_verified(self):
        self.table.get_item.return_value = {
            "Item": {"pk": "USER#host-1", "sk": "IDENTITY", "verified": True}
        }

        status = self.registry.get_status("host-1")

        self.table.get_item.assert_called_once_with(
            Key={"pk": "USER#host-1", "sk": "IDENTITY"}
        )
        self.assertEqual(status.principal, "host-1")
        self.assertTrue(status.verified)

    def test_get_status_defaults_to_unverified(self):
        self.table.get_item.return_value = {
            "Item": {"pk": "USER#host-1", "sk": "IDENTITY"}
        }

        self.assertFalse(self.registry.get_status("host-1").verified)

    def test_get_status_unknown_principal(self):
        self.table.get_item.return_value = {}

        self.assertIsNone(self.registry.get_status("nobody"))


if __name__ == "__main__":
    unittest.main()
