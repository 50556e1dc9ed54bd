"""
Twilio SMS Service
Sends booking SMS through the Twilio REST API using the account configured in the environment
"""

import logging
from typing import Optional

import httpx

from .. import config

logger = logging.getLogger(__name__)

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"


async def send_sms(to_phone: str, message_body: str, message_type: str) -> tuple[bool, Optional[str]]:
    """
    Send SMS via Twilio

    Args:
        to_phone: Recipient phone number (E.164 format)
        message_body: SMS message content
        message_type: Type of message (booking_confirmed, booking_cancelled, ...), for logging

    Returns:
        Tuple of (success: bool, error_message: Optional[str])
    """
    if not config.SMS_ENABLED:
        return False, "SMS disabled"

    if not (config.TWILIO_ACCOUNT_SID and config.TWILIO_AUTH_TOKEN and config.TWILIO_FROM_NUMBER):
        logger.warning("⚠️ SMS enabled but Twilio credentials are not configured")
        return False, "Twilio not configured"

    if not to_phone:
        return False, "No phone number provided"

    if not to_phone.startswith("+"):
        logger.warning(f"Phone number not in E.164 format: {to_phone}")
        return False, "Phone number must be in E.164 format (e.g., +5215512345678)"

    logger.info(f"📱 Sending {message_type} SMS to {to_phone}")
    async with httpx.AsyncClient() as client:
        response = await client.post(
            TWILIO_MESSAGES_URL.format(sid=config.TWILIO_ACCOUNT_SID),
            auth=(config.TWILIO_ACCOUNT_SID, config.TWILIO_AUTH_TOKEN),
            data={"To": to_phone, "From": config.TWILIO_FROM_NUMBER, "Body": message_body},
            timeout=10.0,
        )

    logger.info(f"📡 Twilio API response status: {response.status_code}")
    if response.status_code in (200, 201):
        return True, None

    try:
        error_message = response.json().get("message", response.text)
    except ValueError:
        error_message = response.text
    logger.error(f"❌ Twilio rejected {message_type} SMS to {to_phone}: {error_message}")
    return False, error_message
