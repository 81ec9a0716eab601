"""
Test Labas SMS sending against the live portal

Run this script to verify credentials are configured correctly
and the portal still accepts messages.

Usage: python scripts/send_test_sms.py [recipient]
"""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables before settings are read
load_dotenv()

from labas_sms.core.config import Settings, validate_settings
from labas_sms.core.exceptions import LabasError
from labas_sms.core.logging import setup_logging
from labas_sms.services.sms_client import LabasClient


def check_config(config: Settings) -> bool:
    """Test if credentials are configured"""
    print("=" * 60)
    print("  Labas Configuration Test")
    print("=" * 60 + "\n")

    print(f"User: {config.LABAS_USER or '❌ Not set'}")
    print(f"Password: {'✅ Set' if config.LABAS_PASSWORD else '❌ Not set'}")
    print(f"Portal: {config.LABAS_BASE_URL}")

    try:
        validate_settings(config)
    except ValueError as e:
        print(f"\n❌ {e}")
        print("⚠️  Please set LABAS_USER and LABAS_PASSWORD in .env file")
        return False

    print("\nConfiguration valid: ✅ Yes\n")
    return True


async def send_messages(config: Settings, recipient: str) -> bool:
    """Send two messages through one client, the second reusing the session"""
    print("=" * 60)
    print("  Test Message Sending")
    print("=" * 60 + "\n")

    async with LabasClient(config.LABAS_USER, config.LABAS_PASSWORD) as client:
        for text in ("Test", "Test 2"):
            print(f"📤 Sending '{text}' to {recipient}...")
            try:
                await client.send_sms(recipient, text)
            except LabasError as e:
                print(f"❌ Failed [{e.code}]: {e.message}")
                return False
            print("✅ Sent")

    return True


async def main():
    config = Settings()
    setup_logging(config)

    if not check_config(config):
        return 1

    recipient = sys.argv[1] if len(sys.argv) > 1 else config.LABAS_RECIPIENT
    if not recipient:
        recipient = input("Enter recipient number: ").strip()

    return 0 if await send_messages(config, recipient) else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
