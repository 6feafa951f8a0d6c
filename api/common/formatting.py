"""
Locale-aware number and currency formatting (Moroccan dirham by default).
"""
import logging
import math
from typing import Any, Optional

from babel.core import UnknownLocaleError
from babel.numbers import format_decimal

from api.common.config import CURRENCY, DEFAULT_LANGUAGE
from api.common.utils import safe_float

logger = logging.getLogger(__name__)

LOCALES = {
    "fr": "fr_MA",
    "ar": "ar_MA",
    "en": "en_US",
}

ARABIC_CURRENCY_NAME = "درهم"
ZERO_AMOUNTS = {
    "fr": "0,00 MAD",
    "ar": "0,00 درهم",
}


def normalize_language(language: Optional[str]) -> str:
    """Map an Accept-Language style value ('fr-FR', 'ar') to a supported language code."""
    if not language:
        return DEFAULT_LANGUAGE
    code = language.split(",")[0].split("-")[0].split("_")[0].strip().lower()
    return code if code in LOCALES else DEFAULT_LANGUAGE


def is_number(amount: Any) -> bool:
    if amount is None or amount == "":
        return False
    try:
        return not math.isnan(float(amount))
    except (TypeError, ValueError):
        return False


def currency_symbol(language: str, currency: str = CURRENCY) -> str:
    if language == "ar" and currency == "MAD":
        return ARABIC_CURRENCY_NAME
    return currency


def format_currency(amount: Any, language: Optional[str] = None, currency: str = CURRENCY,
                    decimals: int = 2) -> str:
    """
    Format an amount with its currency for display.

    Invalid or missing amounts are shown as zero. The Arabic rendering uses
    the currency name instead of the ISO code.

    Args:
        amount: Number or numeric string
        language: 'fr', 'ar' or 'en' (defaults to DEFAULT_LANGUAGE)
        currency: ISO currency code
        decimals: Number of fraction digits

    Returns:
        Formatted string such as "1 234,50 MAD"
    """
    language = normalize_language(language)
    symbol = currency_symbol(language, currency)

    if not is_number(amount):
        if currency == "MAD" and decimals == 2 and language in ZERO_AMOUNTS:
            return ZERO_AMOUNTS[language]
        amount = 0

    value = safe_float(amount)
    pattern = "#,##0" + ("." + "0" * decimals if decimals > 0 else "")

    try:
        number = format_decimal(value, format=pattern, locale=LOCALES[language])
    except (UnknownLocaleError, ValueError) as e:
        logger.warning("Currency formatting failed for %s: %s", language, e)
        return f"{value:.{decimals}f} {symbol}"

    if language == "en":
        return f"{symbol} {number}"
    return f"{number} {symbol}"
