# =============================================================================
# utils/phone.py - Phone number normalization
# =============================================================================

import logging
import re
from typing import Optional

NON_DIGITS = re.compile(r'\D')
US_COUNTRY_CODE = '1'

logger = logging.getLogger(__name__)


def normalize_phone_number(raw: Optional[str]) -> Optional[str]:
    """
    Reduce a phone number to its 10-digit canonical form.

    Every non-digit character is dropped, and an 11-digit number starting
    with the US country code '1' loses that prefix.

    Args:
        raw: Phone number as stored in the directory

    Returns:
        The 10-digit string, or None when the number cannot be normalized
    """
    digits = NON_DIGITS.sub('', raw or '')

    if len(digits) == 11 and digits.startswith(US_COUNTRY_CODE):
        digits = digits[1:]

    if len(digits) != 10:
        logger.warning(f"Could not normalize phone number '{raw}' ({len(digits)} digits)")
        return None

    return digits
