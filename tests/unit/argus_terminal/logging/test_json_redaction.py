import json
import logging
import unittest

from argus_terminal.logging.json_formatter import StructuredJSONFormatter


class TestJSONRedaction(unittest.TestCase):
    def test_redaction(self):
        formatter = StructuredJSONFormatter()
        record = logging.LogRecord(
            name="test_logger",
            level=logging.INFO,
            pathname="test.py",
            lineno=10,
            msg="Test message",
            args=(),
            exc_info=None,
        )

        record.api_key = "secret_key_value"
        record.nested = {"Password": "hunter2", "public_data": "visible"}
        record.list_data = [{"token": "secret_token"}, {"other": "visible"}]

        data = json.loads(formatter.format(record))

        self.assertEqual(data["api_key"], "[REDACTED]")
        self.assertEqual(data["nested"]["Password"], "[REDACTED]")
        self.assertEqual(data["nested"]["public_data"], "visible")
        self.assertEqual(data["list_data"][0]["token"], "[REDACTED]")
        self.assertEqual(data["list_data"][1]["other"], "visible")
        self.assertEqual(data["message"], "Test message")


if __name__ == "__main__":
    unittest.main()
