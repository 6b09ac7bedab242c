import unittest

from pydantic import ValidationError

from booking_ledger.schemas.settings import LedgerSettings


class TestLedgerSettings(unittest.TestCase):

    def test_defaults(self):
        settings = LedgerSettings()

        self.assertEqual(settings.platform_fee_rate, 5)
        self.assertEqual(settings.cancellation_fee_rate, 10)
        self.assertEqual(settings.max_bookings, 10000)
        self.assertEqual(settings.max_review_comment_length, 500)

    def test_from_env(self):
        settings = LedgerSettings.from_env(
            {"PLATFORM_FEE_RATE": "7", "CANCELLATION_FEE_RATE": "20", "MAX_BOOKINGS": "3"}
        )

        self.assertEqual(settings.platform_fee_rate, 7)
        self.assertEqual(settings.cancellation_fee_rate, 20)
        self.assertEqual(settings.max_bookings, 3)

    def test_from_env_ignores_blank_values(self):
        settings = LedgerSettings.from_env({"PLATFORM_FEE_RATE": ""})

        self.assertEqual(settings.platform_fee_rate, 5)

    def test_rate_out_of_range(self):
        with self.assertRaises(ValidationError):
            LedgerSettings(platform_fee_rate=101)
        with self.assertRaises(ValidationError):
            LedgerSettings.from_env({"CANCELLATION_FEE_RATE": "-1"})

    def test_settings_are_frozen(self):
        settings = LedgerSettings()

        with self.assertRaises(ValidationError):
            settings.platform_fee_rate = 50

    def test_fee_helpers_floor(self):
        settings = LedgerSettings(platform_fee_rate=5, cancellation_fee_rate=10)

        self.assertEqual(settings.cancellation_fee_for(1000), 100)
        self.assertEqual(settings.cancellation_fee_for(999), 99)
        self.assertEqual(settings.platform_fee_for(1000), 50)
        self.assertEqual(settings.platform_fee_for(19), 0)


if __name__ == "__main__":
    unittest.main()
