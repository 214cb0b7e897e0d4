from datetime import timedelta

import pytest
from booking.config import Settings
from booking.deps import get_client_profile, require_staff
from booking.utils.auth import STAFF_ROLE, bearer_token, create_access_token, decode_access_token
from fastapi import HTTPException

SETTINGS = Settings(auth_secret="testsecret")


def _token(subject: str, **claims: object) -> str:
    return create_access_token(
        subject=subject,
        secret=SETTINGS.auth_secret,
        algorithm=SETTINGS.auth_algorithm,
        claims=dict(claims),
    )


def test_decode_roundtrip_keeps_claims() -> None:
    payload = decode_access_token(_token("a@example.com", role=STAFF_ROLE), secret="testsecret", algorithms=["HS256"])
    assert payload["sub"] == "a@example.com"
    assert payload["role"] == STAFF_ROLE


def test_decode_rejects_expired_token() -> None:
    token = create_access_token(subject="a@example.com", secret="testsecret", expires_delta=timedelta(seconds=-1))
    with pytest.raises(ValueError):
        decode_access_token(token, secret="testsecret", algorithms=["HS256"])


@pytest.mark.parametrize("header", [None, "", "Basic abc", "Bearer ", "Bearer"])
def test_bearer_token_rejects_malformed_headers(header: str | None) -> None:
    assert bearer_token(header) is None


@pytest.mark.asyncio
async def test_client_profile_from_token() -> None:
    token = _token("ana@example.com", name="Ana", phone="555-0100")
    profile = await get_client_profile(authorization=f"Bearer {token}", settings=SETTINGS)
    assert profile.email == "ana@example.com"
    assert profile.name == "Ana"
    assert profile.phone == "555-0100"


@pytest.mark.asyncio
async def test_client_profile_name_falls_back_to_email() -> None:
    profile = await get_client_profile(authorization=f"Bearer {_token('ana@example.com')}", settings=SETTINGS)
    assert profile.name == "ana"
    assert profile.phone == ""


@pytest.mark.asyncio
async def test_client_profile_requires_header() -> None:
    with pytest.raises(HTTPException) as excinfo:
        await get_client_profile(authorization=None, settings=SETTINGS)
    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_require_staff_accepts_staff_role() -> None:
    token = _token("desk@example.com", role=STAFF_ROLE)
    assert await require_staff(authorization=f"Bearer {token}", settings=SETTINGS) == "desk@example.com"


@pytest.mark.asyncio
async def test_require_staff_rejects_other_roles() -> None:
    with pytest.raises(HTTPException) as excinfo:
        await require_staff(authorization=f"Bearer {_token('ana@example.com')}", settings=SETTINGS)
    assert excinfo.value.status_code == 403


@pytest.mark.asyncio
async def test_require_staff_rejects_expired_token() -> None:
    token = create_access_token(
        subject="desk@example.com",
        secret=SETTINGS.auth_secret,
        expires_delta=timedelta(seconds=-1),
        claims={"role": STAFF_ROLE},
    )
    with pytest.raises(HTTPException) as excinfo:
        await require_staff(authorization=f"Bearer {token}", settings=SETTINGS)
    assert excinfo.value.status_code == 401
