from __future__ import annotations

import hmac

import pytest

from pdfraster.access import check_access, is_authorized
from pdfraster.exceptions import UnauthorizedError


def test_gate_is_open_without_secret() -> None:
    assert is_authorized(None, None)
    assert is_authorized(None, "anything")


def test_gate_requires_exact_token() -> None:
    assert is_authorized("s3cret", "s3cret")
    assert not is_authorized("s3cret", None)
    assert not is_authorized("s3cret", "")
    assert not is_authorized("s3cret", "S3CRET")
    assert not is_authorized("s3cret", "s3cret ")


def test_check_access_raises_unauthorized() -> None:
    with pytest.raises(UnauthorizedError) as exc_info:
        check_access("s3cret", "wrong")

    assert exc_info.value.status_code == 401
    assert exc_info.value.response_message == "Unauthorized"


def test_check_access_passes_matching_token() -> None:
    check_access("s3cret", "s3cret")


def test_gate_compares_in_constant_time(mocker) -> None:
    spy = mocker.spy(hmac, "compare_digest")

    is_authorized("s3cret", "guess")

    spy.assert_called_once_with(b"s3cret", b"guess")
