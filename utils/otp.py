import logging
import secrets
from typing import Callable, Optional

from core.config import OTP_LENGTH, OTP_TTL_SECONDS
from utils.cache import OtpCache
from utils.sms import LoggingOtpDelivery, OtpDelivery, mask_phone


logger = logging.getLogger(__name__)

OTP_KEY_PREFIX = "otp:"


def otp_key(phone: str) -> str:
    return f"{OTP_KEY_PREFIX}{phone}"


def generate_otp(length: int = OTP_LENGTH, randbelow: Callable[[int], int] = secrets.randbelow) -> str:
    """
    Uniformly random numeric code with exactly ``length`` digits
    (100000..999999 for the default length).
    """
    if length < 1:
        raise ValueError("OTP length must be at least 1")
    lower = 10 ** (length - 1)
    upper = 10 ** length
    return str(lower + randbelow(upper - lower))


class OtpManager:
    """
    Issues and checks one-time codes, one live code per phone.

    A phone's slot is either empty or holds a single pending code with an
    expiry. ``send_otp`` always replaces the pending code. ``verify_otp``
    consumes the code only when it matches; a wrong guess leaves it (and its
    expiry) untouched. The match-and-consume is a single compare-and-delete
    on the cache, so two concurrent correct attempts cannot both succeed.

    Cache failures raise ``StorageError`` and are never reported as a failed
    verification.
    """

    def __init__(
        self,
        cache: OtpCache,
        ttl_seconds: int = OTP_TTL_SECONDS,
        length: int = OTP_LENGTH,
        delivery: Optional[OtpDelivery] = None,
        expose_code_for_testing: bool = False,
        randbelow: Callable[[int], int] = secrets.randbelow,
    ):
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.length = length
        self.delivery = delivery or LoggingOtpDelivery()
        self.expose_code_for_testing = expose_code_for_testing
        self._randbelow = randbelow

    async def send_otp(self, phone: str) -> str:
        """
        Generate a code for ``phone``, store it for ``ttl_seconds`` and hand it
        to the delivery channel. The code is returned to the in-process caller
        only; the API decides separately whether it may be exposed.
        """
        otp = generate_otp(self.length, self._randbelow)
        await self.cache.set(otp_key(phone), otp, self.ttl_seconds)
        await self.delivery.deliver(phone, otp)
        return otp

    async def verify_otp(self, phone: str, otp: str) -> bool:
        # Exact string match, no normalisation of the submitted code
        if not isinstance(otp, str):
            return False
        verified = await self.cache.compare_and_delete(otp_key(phone), otp)
        if verified:
            logger.info(f"OTP verified for {mask_phone(phone)}")
        else:
            logger.debug(f"OTP verification failed for {mask_phone(phone)}")
        return verified
