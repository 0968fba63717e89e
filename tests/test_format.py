import pytest

from tenny.utils.format import confidence_badge, duration, fmt_date, money, pct


@pytest.mark.parametrize(
    "value,currency,expected",
    [
        (1234.5, "USD", "$1,234.50"),
        (-5, "USD", "-$5.00"),
        (1234.5, "EUR", "€1,234.50"),
        (1234.4, "JPY", "¥1,234"),
        (0, "GBP", "£0.00"),
        ("n/a", "USD", "$n/a"),
    ],
)
def test_money(value, currency, expected):
    assert money(value, currency) == expected


def test_fmt_date_patterns():
    assert fmt_date("2024-03-05") == "03/05/2024"
    assert fmt_date("2024-03-05T10:00:00Z", "DD/MM/YYYY") == "05/03/2024"
    assert fmt_date("2024-03-05", "YYYY-MM-DD") == "2024-03-05"
    assert fmt_date("someday") == "someday"


def test_pct():
    assert pct(33.333) == "33.3%"


def test_confidence_badge():
    assert confidence_badge(0.85) == "🟢 High (85%)"
    assert confidence_badge(0.6) == "🟡 Medium (60%)"
    assert confidence_badge(0.2) == "🔴 Low (20%)"


def test_duration_is_in_seconds():
    assert duration(1.42) == "1.4 s"
    assert duration(0.64) == "640 ms"
    assert duration(12) == "12.0 s"
