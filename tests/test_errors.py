import uuid

import pytest

from storefront.errors import (
    ConflictError,
    DomainError,
    ErrorKind,
    NotFoundError,
    internal_error,
    parse_uuid,
    round2,
    validation_error,
)


def test_parse_uuid_accepts_canonical_string():
    value = uuid.uuid4()
    assert parse_uuid(str(value), "cart id") == value


def test_parse_uuid_passes_uuid_through():
    value = uuid.uuid4()
    assert parse_uuid(value, "cart id") is value


@pytest.mark.parametrize("raw", ["", "not-a-uuid", "1234", None])
def test_parse_uuid_rejects_garbage(raw):
    with pytest.raises(DomainError) as info:
        parse_uuid(raw, "cart id")
    assert info.value.status == 400
    assert info.value.kind is ErrorKind.VALIDATION
    assert info.value.message == "invalid cart id"


def test_validation_error_fields():
    err = validation_error("quantity must be greater than zero")
    assert err.status == 400
    assert err.kind is ErrorKind.VALIDATION
    assert str(err) == "quantity must be greater than zero"


def test_internal_error_keeps_cause():
    cause = RuntimeError("boom")
    err = internal_error(cause)
    assert err.status == 500
    assert err.kind is ErrorKind.INTERNAL
    assert err.cause is cause


def test_not_found_and_conflict_statuses():
    missing = NotFoundError("cart item not found")
    clash = ConflictError()
    assert isinstance(missing, DomainError)
    assert (missing.status, missing.kind) == (404, ErrorKind.NOT_FOUND)
    assert (clash.status, clash.kind) == (409, ErrorKind.CONFLICT)
    assert missing.message == "cart item not found"


def test_round2_rounds_half_away_from_zero():
    assert round2(0.125) == 0.13
    assert round2(-0.125) == -0.13


@pytest.mark.parametrize("value", [0.0, 2.0, 3.14159, 10.555, -7.25, 1234.5678])
def test_round2_is_idempotent_and_close(value):
    once = round2(value)
    assert round2(once) == once
    assert abs(once - value) <= 0.005 + 1e-9


def test_round2_keeps_whole_numbers():
    assert round2(42.0) == 42.0