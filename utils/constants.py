"""
utils/constants.py

Purpose: Centralized static content

- SMS message template
- User-facing status and error messages
- Delivery method identifiers

(Prevents hardcoding across the codebase)
"""

# ============================================================
# VERIFICATION CODES
# ============================================================

CODE_LENGTH = 6

SMS_MESSAGE_TEMPLATE = (
    "🔐 {service_name} verification code: {code}. "
    "Expires in {ttl_minutes} minutes. "
    "If you didn't request this, ignore this message."
)


# ============================================================
# DELIVERY METHODS
# ============================================================

METHOD_REAL_SMS = "real_sms"
METHOD_DEMO_MODE = "demo_mode"


# ============================================================
# STATUS MESSAGES
# ============================================================

MESSAGE_SMS_SENT = "SMS sent successfully to your phone!"
MESSAGE_DEMO_SENT = "Demo mode: Check console for verification code"
MESSAGE_CODE_VERIFIED = "Code verified successfully"


# ============================================================
# ERROR MESSAGES
# ============================================================

ERROR_PHONE_REQUIRED = "Phone number is required"
ERROR_INVALID_PHONE_FORMAT = "Invalid phone number format. Please include country code."
ERROR_PHONE_AND_CODE_REQUIRED = "Phone number and code are required"
ERROR_RATE_LIMITED = "Too many SMS requests. Please try again later."
ERROR_NO_CODE = "No verification code found"
ERROR_CODE_EXPIRED = "Verification code has expired"
ERROR_ATTEMPTS_EXHAUSTED = "Too many failed attempts"
ERROR_INVALID_CODE = "Invalid verification code"
ERROR_DESTINATION_INVALID = "Invalid phone number. Please check and try again."
ERROR_DESTINATION_UNREACHABLE = "Phone number is not reachable."


# ============================================================
# TWILIO
# ============================================================

# Error codes meaning the destination itself can never receive the SMS
TWILIO_ERROR_NOT_MOBILE = 21614
TWILIO_ERROR_UNREACHABLE = 21608

TWILIO_PERMANENT_ERRORS = {
    TWILIO_ERROR_NOT_MOBILE: ERROR_DESTINATION_INVALID,
    TWILIO_ERROR_UNREACHABLE: ERROR_DESTINATION_UNREACHABLE,
}
