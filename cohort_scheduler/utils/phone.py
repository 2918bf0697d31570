import re
from typing import Optional, Union

from cohort_scheduler.core.config import settings

MIN_PHONE_DIGITS = 10
MAX_PHONE_DIGITS = 15


def format_phone_for_whatsapp(
    phone: Union[str, int, None],
    country_code: Optional[str] = None
) -> Optional[str]:
    """Normalize a phone number to WhatsApp's digits-only international form.

    Ten bare digits get the home country prefix, a trunk ``0`` is replaced by it,
    and anything already carrying a prefix is kept. Returns None when the result
    cannot be sent to.
    """
    if phone is None or phone == "":
        return None

    country_code = country_code or settings.PHONE_COUNTRY_CODE
    cleaned = re.sub(r"\D", "", str(phone))

    if len(cleaned) == 10:
        cleaned = country_code + cleaned
    elif cleaned.startswith("0"):
        cleaned = country_code + cleaned[1:]

    if len(cleaned) < MIN_PHONE_DIGITS or len(cleaned) > MAX_PHONE_DIGITS:
        return None
    return cleaned
