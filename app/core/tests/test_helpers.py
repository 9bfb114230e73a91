"""
Tests for core helper functions.
"""

import uuid

import pytest
from django.test import RequestFactory

from core.helpers import get_client_ip, parse_uuid


class TestParseUuid:
    def test_valid_string(self):
        value = "550e8400-e29b-41d4-a716-446655440000"

        assert parse_uuid(value) == uuid.UUID(value)

    def test_uuid_passthrough(self):
        value = uuid.uuid4()

        assert parse_uuid(value) is value

    @pytest.mark.parametrize("value", [None, "", "not-a-uuid", 42, "550e8400"])
    def test_invalid_returns_none(self, value):
        assert parse_uuid(value) is None


class TestGetClientIp:
    def test_forwarded_for_first_address(self):
        request = RequestFactory().post(
            "/", HTTP_X_FORWARDED_FOR="203.0.113.7, 10.0.0.1"
        )

        assert get_client_ip(request) == "203.0.113.7"

    def test_remote_addr(self):
        request = RequestFactory().post("/", REMOTE_ADDR="198.51.100.2")

        assert get_client_ip(request) == "198.51.100.2"
