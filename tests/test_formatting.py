from datetime import date

from formatting import format_brl, format_date, format_number, format_percent, month_label


def test_format_number_uses_brazilian_separators() -> None:
    assert format_number(1234.5) == "1.234,50"
    assert format_number(1234567.891, 1) == "1.234.567,9"
    assert format_number(0) == "0,00"


def test_format_brl() -> None:
    assert format_brl(1500) == "R$ 1.500,00"
    assert format_brl(-10) == "-R$ 10,00"


def test_format_percent() -> None:
    assert format_percent(12.345) == "12.3%"


def test_dates() -> None:
    assert month_label(date(2024, 3, 1)) == "mar. de 2024"
    assert format_date(date(2024, 3, 9)) == "09/03/2024"
