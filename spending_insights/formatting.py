"""Small text formatters for terminal output."""

from __future__ import annotations

_CURRENCY_SYMBOLS: dict[str, str] = {"EUR": "€", "GBP": "£", "USD": "$"}


def format_currency(amount: float | None, currency: str = "EUR") -> str:
    """Format ``amount`` with two decimals and the currency symbol or code.

    ``None`` renders as zero. Negative amounts keep a leading minus sign.
    """

    value = float(amount or 0.0)
    symbol = _CURRENCY_SYMBOLS.get(currency.upper())
    sign = "-" if value < 0 else ""
    body = f"{abs(value):,.2f}"
    if symbol is not None:
        return f"{sign}{symbol}{body}"
    return f"{sign}{body} {currency.upper()}"


def format_percentage(value: float, decimals: int = 1) -> str:
    return f"{value:.{decimals}f}%"


def truncate(text: str, max_length: int = 50) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


__all__ = ["format_currency", "format_percentage", "truncate"]
