from datetime import date
from typing import Any

CURRENCIES = {
    "USD": ("US Dollar", "$"),
    "EUR": ("Euro", "€"),
    "GBP": ("British Pound", "£"),
    "JPY": ("Japanese Yen", "¥"),
    "CAD": ("Canadian Dollar", "$"),
    "AUD": ("Australian Dollar", "$"),
}

DATE_FORMATS = {
    "MM/DD/YYYY": "%m/%d/%Y",
    "DD/MM/YYYY": "%d/%m/%Y",
    "YYYY-MM-DD": "%Y-%m-%d",
}


def money(x: Any, currency: str = "USD") -> str:
    symbol = CURRENCIES.get(currency, ("", "$"))[1]
    try:
        n = float(x)
    except (TypeError, ValueError):
        return f"{symbol}{x}"
    # yen has no minor unit
    body = f"{abs(n):,.0f}" if currency == "JPY" else f"{abs(n):,.2f}"
    return ("-" if n < 0 else "") + symbol + body


def fmt_date(value: str, pattern: str = "MM/DD/YYYY") -> str:
    try:
        d = date.fromisoformat(str(value)[:10])
    except ValueError:
        return str(value)
    return d.strftime(DATE_FORMATS.get(pattern, "%m/%d/%Y"))


def pct(x: float) -> str:
    return f"{x:.1f}%"


def confidence_badge(conf: float) -> str:
    """Traffic-light label for an OCR confidence in [0, 1]."""
    label = "🟢 High" if conf >= 0.8 else "🟡 Medium" if conf >= 0.6 else "🔴 Low"
    return f"{label} ({conf * 100:.0f}%)"


def duration(seconds: float) -> str:
    """OCR processing time, reported by the backend in seconds."""
    if seconds < 1:
        return f"{seconds * 1000:.0f} ms"
    return f"{seconds:.1f} s"
