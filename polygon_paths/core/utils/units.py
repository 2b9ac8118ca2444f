from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, InvalidOperation


def _to_decimal(value: str | int | float | Decimal) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return Decimal(value)
    return Decimal(str(value).strip())


def to_erc20_raw(amount_tokens: str | int | float | Decimal, decimals: int) -> int:
    try:
        amt = _to_decimal(amount_tokens)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid token amount: {amount_tokens}") from exc
    if amt < 0:
        raise ValueError("Amount must be non-negative")
    scale = Decimal(10) ** int(decimals)
    return int((amt * scale).to_integral_value(rounding=ROUND_DOWN))


def gwei_to_wei(amount_gwei: str | int | float | Decimal) -> int:
    return to_erc20_raw(amount_gwei, 9)


def format_units(raw: int, decimals: int = 18) -> str:
    """Render a smallest-unit integer as a plain decimal string ("1.5", "0")."""
    value = Decimal(int(raw)) / (Decimal(10) ** int(decimals))
    text = format(value.normalize(), "f")
    return text if "." not in text else text.rstrip("0").rstrip(".")


def format_gas_price(wei: int) -> str:
    return f"{format_units(wei, 9)} gwei"
