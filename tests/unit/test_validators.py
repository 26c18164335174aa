"""Validation helper tests."""

import pytest

from helpdesk.utils.validators import (
    is_valid_cpf,
    is_valid_email,
    is_valid_phone,
    webhook_url_error,
)


@pytest.mark.parametrize(
    "email,expected",
    [
        ("maria@example.com", True),
        ("maria.souza+suporte@mail.example.com.br", True),
        ("maria@example", False),
        ("maria..souza@example.com", False),
        ("@example.com", False),
        ("maria@@example.com", False),
        ("", False),
    ],
)
def test_email_validation(email, expected):
    assert is_valid_email(email) is expected


def test_cpf_validation():
    assert is_valid_cpf("529.982.247-25")
    assert is_valid_cpf("52998224725")
    assert not is_valid_cpf("529.982.247-26")
    assert not is_valid_cpf("111.111.111-11")
    assert not is_valid_cpf("123")


def test_phone_validation():
    assert is_valid_phone("(11) 98765-4321")
    assert is_valid_phone("21 3456-7890")
    assert not is_valid_phone("(01) 2345-6789")
    assert not is_valid_phone("98765-4321")


class TestWebhookUrl:

    def test_public_https_url_is_accepted(self):
        assert webhook_url_error("https://hooks.example.com/helpdesk") is None

    @pytest.mark.parametrize(
        "url",
        [
            "http://localhost:8000/hook",
            "http://127.0.0.1/hook",
            "http://10.0.0.5/hook",
            "http://192.168.1.20/hook",
            "http://169.254.169.254/latest/meta-data",
            "http://[::1]/hook",
        ],
    )
    def test_private_destinations_are_blocked(self, url):
        assert webhook_url_error(url) == "Cannot use localhost or private network addresses"

    def test_non_http_scheme_is_blocked(self):
        assert webhook_url_error("ftp://files.example.com/x") == "Only HTTP/HTTPS protocols are allowed"

    def test_http_blocked_when_https_required(self):
        assert webhook_url_error("http://hooks.example.com", allow_http=False) == (
            "Only HTTPS URLs are allowed in production"
        )
        assert webhook_url_error("http://hooks.example.com", allow_http=True) is None

    def test_garbage_is_invalid(self):
        assert webhook_url_error("not a url") == "Invalid URL format"
