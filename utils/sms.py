import logging
from typing import Protocol


logger = logging.getLogger(__name__)

REDACTED = "******"


def mask_phone(phone: str) -> str:
    """
    Mask a phone number for logs, keeping the last 4 characters.
    Anything that is not a string is treated as empty.
    """
    if not isinstance(phone, str):
        return ""
    if len(phone) <= 4:
        return "*" * len(phone)
    return "*" * (len(phone) - 4) + phone[-4:]


class OtpDelivery(Protocol):
    async def deliver(self, phone: str, otp: str) -> None: ...


class LoggingOtpDelivery:
    """
    Stand-in for an SMS gateway: the code is only written to the log.
    The plaintext code is logged at DEBUG; at any other level it is redacted
    together with the phone number.
    """

    def __init__(self, log: logging.Logger = logger):
        self.log = log

    async def deliver(self, phone: str, otp: str) -> None:
        if self.log.isEnabledFor(logging.DEBUG):
            self.log.debug(f"OTP for {phone}: {otp}")
        else:
            self.log.info(f"OTP for {mask_phone(phone)}: {REDACTED}")
