# /bhishak/utils/sms_util.py
from flask import current_app
from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client


def to_e164(phone: str) -> str:
    """Adds the default country code to bare national numbers."""
    if phone.startswith('+'):
        return phone
    return f"{current_app.config['SMS_DEFAULT_COUNTRY_CODE']}{phone}"


def send_otp_sms(phone: str, otp: str) -> bool:
    """
    Sends the OTP to a patient's phone via Twilio.

    With SMS disabled (development, tests) the code is only written to the
    application log.
    """
    body = f"Your Bhishak Med OTP is: {otp}. Valid for 10 minutes. Do not share this code."

    if not current_app.config.get('SMS_ENABLED'):
        current_app.logger.info(f"OTP for {phone}: {otp} (SMS disabled - not sent)")
        return True

    account_sid = current_app.config.get('TWILIO_ACCOUNT_SID')
    auth_token = current_app.config.get('TWILIO_AUTH_TOKEN')
    from_number = current_app.config.get('TWILIO_PHONE_NUMBER')

    if not all([account_sid, auth_token, from_number]):
        current_app.logger.error("Twilio is not configured. Cannot send OTP SMS.")
        return False

    try:
        client = Client(account_sid, auth_token)
        client.messages.create(body=body, from_=from_number, to=to_e164(phone))
        current_app.logger.info(f"Sent OTP SMS to {phone}")
        return True
    except TwilioRestException as e:
        current_app.logger.error(f"Failed to send OTP SMS to {phone}: {e}")
        return False
