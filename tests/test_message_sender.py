import httpx
import pytest
import respx

from app.core.config import Settings
from app.services.message_sender import DemoSender, TwilioSender, get_message_sender

MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/ACtest/Messages.json"


def make_sender() -> TwilioSender:
    return TwilioSender(account_sid="ACtest", auth_token="secret", from_number="+15550000000")


@pytest.mark.asyncio
@respx.mock
async def test_twilio_send_success():
    route = respx.post(MESSAGES_URL).mock(
        return_value=httpx.Response(201, json={"sid": "SM42", "status": "queued"})
    )
    sender = make_sender()

    result = await sender.send("+15551234567", "hello")
    await sender.close()

    assert route.called
    request = route.calls.last.request
    body = request.content.decode()
    assert "To=%2B15551234567" in body
    assert "From=%2B15550000000" in body
    assert request.headers["authorization"].startswith("Basic ")

    assert result.success
    assert result.provider_reference == "SM42"
    assert result.status == "queued"


@pytest.mark.asyncio
@pytest.mark.parametrize("twilio_code", [21614, 21608])
@respx.mock
async def test_twilio_destination_errors_are_permanent(twilio_code):
    respx.post(MESSAGES_URL).mock(
        return_value=httpx.Response(400, json={"code": twilio_code, "message": "bad number", "status": 400})
    )
    sender = make_sender()

    result = await sender.send("+15551234567", "hello")
    await sender.close()

    assert not result.success
    assert result.permanent
    assert result.error_code == twilio_code


@pytest.mark.asyncio
@respx.mock
async def test_twilio_other_errors_are_transient():
    respx.post(MESSAGES_URL).mock(
        return_value=httpx.Response(401, json={"code": 20003, "message": "Authenticate", "status": 401})
    )
    sender = make_sender()

    result = await sender.send("+15551234567", "hello")
    await sender.close()

    assert not result.success
    assert not result.permanent
    assert result.error == "Authenticate"


@pytest.mark.asyncio
@respx.mock
async def test_twilio_non_json_error_body():
    respx.post(MESSAGES_URL).mock(return_value=httpx.Response(503, text="Service Unavailable"))
    sender = make_sender()

    result = await sender.send("+15551234567", "hello")
    await sender.close()

    assert not result.success
    assert not result.permanent
    assert result.error == "Twilio API error: 503"


@pytest.mark.asyncio
@pytest.mark.parametrize("body", ["<html>ok</html>", "[]"])
@respx.mock
async def test_twilio_unexpected_success_body_is_transient(body):
    respx.post(MESSAGES_URL).mock(return_value=httpx.Response(200, text=body))
    sender = make_sender()

    result = await sender.send("+15551234567", "hello")
    await sender.close()

    assert not result.success
    assert not result.permanent
    assert result.error == "Unexpected response from Twilio"


@pytest.mark.asyncio
@respx.mock
async def test_twilio_timeout_is_transient():
    respx.post(MESSAGES_URL).mock(side_effect=httpx.ReadTimeout("timed out"))
    sender = make_sender()

    result = await sender.send("+15551234567", "hello")
    await sender.close()

    assert not result.success
    assert not result.permanent
    assert "timeout" in result.error


@pytest.mark.asyncio
@respx.mock
async def test_twilio_network_error_is_transient():
    respx.post(MESSAGES_URL).mock(side_effect=httpx.ConnectError("refused"))
    sender = make_sender()

    result = await sender.send("+15551234567", "hello")
    await sender.close()

    assert not result.success
    assert not result.permanent


@pytest.mark.asyncio
async def test_demo_sender_always_succeeds():
    result = await DemoSender(delay_seconds=0).send("+15551234567", "hello")

    assert result.success
    assert result.method == "demo_mode"
    assert not DemoSender().is_configured()


def test_factory_uses_demo_without_credentials():
    sender = get_message_sender(Settings(_env_file=None))
    assert isinstance(sender, DemoSender)


def test_factory_uses_twilio_with_credentials():
    config = Settings(
        _env_file=None,
        TWILIO_ACCOUNT_SID="ACtest",
        TWILIO_AUTH_TOKEN="secret",
        TWILIO_FROM_NUMBER="+15550000000",
    )
    sender = get_message_sender(config)

    assert isinstance(sender, TwilioSender)
    assert sender.is_configured()
    assert sender.base_url.endswith("/Accounts/ACtest")
