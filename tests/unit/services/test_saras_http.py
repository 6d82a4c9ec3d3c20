import json
from datetime import UTC, datetime
from unittest.mock import call

import httpx
import pytest
from conftest import SARAS_URL

from booking_sync.services.saras.http import (
    DEFAULT_RETRY_AFTER_SECONDS,
    SarasHttpClient,
    parse_retry_after,
)

BOOKING_URL = f"{SARAS_URL}Booking/REF001"
NOW = datetime(2021, 4, 5, 14, 30, 0, tzinfo=UTC)


@pytest.mark.parametrize(
    "header, expected",
    [
        ("5", 5.0),
        ("0", 0.0),
        (" 12 ", 12.0),
        ("Mon, 05 Apr 2021 14:30:20 GMT", 20.0),
        ("Mon, 05 Apr 2021 14:29:00 GMT", 0.0),
        (None, DEFAULT_RETRY_AFTER_SECONDS),
        ("", DEFAULT_RETRY_AFTER_SECONDS),
        ("soon", DEFAULT_RETRY_AFTER_SECONDS),
    ],
)
def test_parse_retry_after(header, expected):
    assert parse_retry_after(header, now=NOW) == expected


@pytest.fixture
def http_client(no_sleep):
    return SarasHttpClient("saras-token", max_retries=3, client=httpx.AsyncClient(), sleep=no_sleep)


@pytest.mark.asyncio
async def test_request_sends_bearer_token_and_json(httpx_mock, http_client):
    httpx_mock.add_response(method="POST", url=BOOKING_URL, status_code=201)

    response = await http_client.post(BOOKING_URL, {"TestType": 3})

    assert response.status_code == 201
    request = httpx_mock.get_request()
    assert request.headers["Authorization"] == "Bearer saras-token"
    assert request.headers["Content-Type"] == "application/json"
    assert json.loads(request.content) == {"TestType": 3}


@pytest.mark.asyncio
async def test_delete_has_no_body(httpx_mock, http_client):
    httpx_mock.add_response(method="DELETE", url=BOOKING_URL, status_code=204)

    await http_client.delete(BOOKING_URL)

    request = httpx_mock.get_request()
    assert request.content == b""
    assert "Content-Type" not in request.headers


@pytest.mark.asyncio
async def test_retries_429_using_retry_after_seconds(httpx_mock, http_client, no_sleep):
    httpx_mock.add_response(
        method="PUT", url=BOOKING_URL, status_code=429, headers={"Retry-After": "2"}
    )
    httpx_mock.add_response(method="PUT", url=BOOKING_URL, status_code=200)

    response = await http_client.put(BOOKING_URL, {})

    assert response.status_code == 200
    no_sleep.assert_awaited_once_with(2.0)
    assert len(httpx_mock.get_requests()) == 2


@pytest.mark.asyncio
async def test_retries_429_with_default_wait_without_header(httpx_mock, http_client, no_sleep):
    httpx_mock.add_response(method="POST", url=BOOKING_URL, status_code=429)
    httpx_mock.add_response(method="POST", url=BOOKING_URL, status_code=201)

    await http_client.post(BOOKING_URL, {})

    no_sleep.assert_awaited_once_with(DEFAULT_RETRY_AFTER_SECONDS)


@pytest.mark.asyncio
async def test_gives_up_after_max_retries(httpx_mock, http_client, no_sleep):
    for _ in range(4):
        httpx_mock.add_response(
            method="POST", url=BOOKING_URL, status_code=429, headers={"Retry-After": "1"}
        )

    with pytest.raises(httpx.HTTPStatusError) as exc_info:
        await http_client.post(BOOKING_URL, {})

    assert exc_info.value.response.status_code == 429
    assert len(httpx_mock.get_requests()) == 4
    assert no_sleep.await_args_list == [call(1.0)] * 3


@pytest.mark.asyncio
async def test_other_errors_are_not_retried(httpx_mock, http_client, no_sleep):
    httpx_mock.add_response(method="PUT", url=BOOKING_URL, status_code=500)

    with pytest.raises(httpx.HTTPStatusError):
        await http_client.put(BOOKING_URL, {})

    no_sleep.assert_not_awaited()
    assert len(httpx_mock.get_requests()) == 1
