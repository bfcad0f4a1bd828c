"""Input parsing shared by the flows.

Parsers raise InvalidInput with a short corrective hint.
"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from sitedesk.conversation.models import Option
from sitedesk.flows.wizard import InvalidInput

_NUMBER = re.compile(r"^\d+(\.\d+)?$")


def match_option(value: str, options: list[Option]) -> Option | None:
    """Match a reply to an option by id, 1-based position or title."""
    normalized = value.strip().lower()
    if not normalized:
        return None
    for option in options:
        if normalized in (option.id.lower(), option.title.lower()):
            return option
    if normalized.isdigit():
        index = int(normalized)
        if 1 <= index <= len(options):
            return options[index - 1]
    return None


def require_option(value: str, options: list[Option]) -> Option:
    option = match_option(value, options)
    if option is None:
        raise InvalidInput("Please pick one of the listed options.")
    return option


def parse_decimal(text: str, *, maximum: float, label: str = "quantity") -> float:
    """Parse a positive decimal no larger than ``maximum``."""
    cleaned = text.strip().replace(",", "")
    if not _NUMBER.match(cleaned):
        raise InvalidInput(f"Please enter the {label} as a number, e.g. 10 or 12.5.")
    try:
        value = Decimal(cleaned)
    except InvalidOperation as e:
        raise InvalidInput(f"Please enter the {label} as a number.") from e
    if value <= 0:
        raise InvalidInput(f"The {label} must be greater than zero.")
    if value > Decimal(str(maximum)):
        raise InvalidInput(f"The {label} cannot be more than {maximum:g}.")
    number = float(value)
    return int(number) if number.is_integer() else number


def parse_integer(text: str, *, maximum: int, label: str = "quantity") -> int:
    """Parse a positive whole number no larger than ``maximum``."""
    cleaned = text.strip().replace(",", "")
    if not cleaned.isdigit():
        raise InvalidInput(f"Please enter the {label} as a whole number, e.g. 25.")
    value = int(cleaned)
    if value <= 0:
        raise InvalidInput(f"The {label} must be greater than zero.")
    if value > maximum:
        raise InvalidInput(f"The {label} cannot be more than {maximum:,}.")
    return value


def parse_text(text: str, *, min_length: int, label: str) -> str:
    cleaned = text.strip()
    if len(cleaned) < min_length:
        raise InvalidInput(f"Please enter a {label} of at least {min_length} characters.")
    return cleaned


def parse_date(text: str, formats: tuple[str, ...]) -> date:
    cleaned = text.strip()
    for fmt in formats:
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue
    raise InvalidInput("Please enter a valid date, e.g. 25/12/2026.")


def parse_past_date(text: str, today: date, formats: tuple[str, ...] = ("%d/%m/%Y",)) -> date:
    """A date that has already happened (today allowed)."""
    value = parse_date(text, formats)
    if value > today:
        raise InvalidInput("The date cannot be in the future.")
    return value


def parse_future_date(
    text: str,
    today: date,
    formats: tuple[str, ...] = ("%Y-%m-%d", "%d/%m/%Y"),
) -> date:
    """A date that is still to come (today not allowed)."""
    value = parse_date(text, formats)
    if value <= today:
        raise InvalidInput("Please choose a date after today.")
    return value
