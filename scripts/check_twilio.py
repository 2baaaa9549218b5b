"""
Check Twilio SMS Integration

Run this script to verify Twilio is configured correctly
and can send SMS messages.

Usage: python scripts/check_twilio.py
"""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables before settings are read
load_dotenv()

from app.core.config import settings
from app.services.message_sender import TwilioSender
from utils.validation_utils import normalize_phone_number
from app.core.exceptions import ValidationError


def check_twilio_config() -> bool:
    """Check that Twilio credentials are present"""
    print("=" * 60)
    print("  Twilio Configuration Check")
    print("=" * 60 + "\n")

    print(f"Account SID: {settings.TWILIO_ACCOUNT_SID[:10]}..." if settings.TWILIO_ACCOUNT_SID else "Account SID: ❌ Not set")
    print(f"Auth Token: {'✅ Set' if settings.TWILIO_AUTH_TOKEN else '❌ Not set'}")
    print(f"From Number: {settings.TWILIO_FROM_NUMBER or '❌ Not set'}")
    print(f"\nConfiguration valid: {'✅ Yes' if settings.twilio_configured else '❌ No'}\n")

    if not settings.twilio_configured:
        print("⚠️  Please set TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_FROM_NUMBER in .env")
        return False

    return True


async def send_test_message():
    """Send a test SMS"""
    print("=" * 60)
    print("  Test Message Sending")
    print("=" * 60 + "\n")

    raw = input("Enter your phone number (e.g., +15551234567): ")

    try:
        phone = normalize_phone_number(raw)
    except ValidationError as e:
        print(f"❌ {e.message}")
        return

    print(f"\n📤 Sending test SMS to {phone}...")

    sender = TwilioSender(
        account_sid=settings.TWILIO_ACCOUNT_SID,
        auth_token=settings.TWILIO_AUTH_TOKEN,
        from_number=settings.TWILIO_FROM_NUMBER,
        base_url=settings.TWILIO_BASE_URL,
        timeout=settings.SMS_SEND_TIMEOUT_SECONDS,
    )

    try:
        result = await sender.send(
            phone,
            f"🧪 Test message from {settings.SERVICE_NAME}. If you received this, SMS delivery is working! ✅"
        )
    finally:
        await sender.close()

    if result.success:
        print("\n✅ Message sent successfully!")
        print(f"Message SID: {result.provider_reference}")
        print(f"Status: {result.status}")
        print("\n📱 Check your phone!")
    else:
        print("\n❌ Failed to send message")
        print(f"Error: {result.error} (code={result.error_code}, permanent={result.permanent})")


async def main():
    print(f"\n🧪 {settings.SERVICE_NAME} Twilio Check\n")

    if not check_twilio_config():
        print("\n❌ Configuration check failed. Please fix .env file and try again.")
        return

    print("=" * 60)
    answer = input("\nDo you want to send a test message? (y/n): ")

    if answer.lower() == "y":
        await send_test_message()
    else:
        print("\n✅ Configuration check passed!")

    print("\nNext steps:")
    print("1. Start server: uvicorn app.main:app --reload")
    print("2. POST /api/send-verification-code with {\"phoneNumber\": \"...\"}")
    print("\n" + "=" * 60 + "\n")


if __name__ == "__main__":
    asyncio.run(main())
