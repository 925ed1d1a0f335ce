"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re
from typing import Union

from bankimport.domain.errors import ValidationError


def parse_amount(amount: Union[str, int, float, Decimal]) -> Decimal:
    """Parse an amount into a Decimal.

    Handles the formats found in bank feeds:
    - "123.45"
    - "-123.45"
    - "+123.45"
    - "1,234.56"
    - "1 234.56"
    - "€123.45"
    - numbers already decoded from JSON

    Args:
        amount: Amount string or number

    Returns:
        Decimal amount

    Raises:
        ValidationError: If the amount cannot be parsed
    """
    if isinstance(amount, Decimal):
        return amount
    if isinstance(amount, bool):
        raise ValidationError(f"Could not parse amount '{amount}'")
    if isinstance(amount, (int, float)):
        # str() keeps the shortest repr, so 0.1 does not become 0.1000000000000000055...
        amount = str(amount)

    if not amount or not amount.strip():
        raise ValidationError("Empty amount string")

    amount_str = re.sub(r"[$€£¥\s]", "", amount.strip())
    amount_str = amount_str.replace(",", "")

    try:
        value = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValidationError(f"Could not parse amount '{amount}'") from e
    if not value.is_finite():
        raise ValidationError(f"Could not parse amount '{amount}'")
    return value
