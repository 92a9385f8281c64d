from datetime import datetime
from decimal import Decimal
from typing import Optional


def format_amount(value) -> str:
    """10000 -> "10,000", 2500.5 -> "2,500.50" """
    value = value if isinstance(value, Decimal) else Decimal(str(value or 0))
    if value == value.to_integral_value():
        return f"{value:,.0f}"
    return f"{value:,.2f}"


def format_timestamp(value: Optional[datetime]) -> str:
    """
    "March 5, 2025 at 2:30:45 PM"
    """
    if value is None:
        return ""
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return (
        f"{value.strftime('%B')} {value.day}, {value.year} at "
        f"{hour}:{value.minute:02d}:{value.second:02d} {suffix}"
    )
