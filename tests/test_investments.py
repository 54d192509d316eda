import pytest

from investments import calculate_investment_projection, growth_table


def test_projection_compounds_monthly() -> None:
    (one_year,) = calculate_investment_projection(1000.0, 0.0, 0.12, [1])
    assert one_year.months == 12
    assert one_year.total_invested == pytest.approx(1000.0)
    assert one_year.total_value == pytest.approx(1126.83, abs=0.01)
    assert one_year.return_rate == pytest.approx(12.68, abs=0.01)


def test_projection_with_contributions_and_no_interest() -> None:
    (one_year,) = calculate_investment_projection(0.0, 100.0, 0.0, [1])
    assert one_year.total_value == pytest.approx(1200.0)
    assert one_year.earnings == pytest.approx(0.0)


def test_default_horizons() -> None:
    years = [p.year for p in calculate_investment_projection(500.0, 200.0, 0.1)]
    assert years == [1, 5, 10, 20, 30]


def test_growth_table_includes_year_zero() -> None:
    table = growth_table(0.0, 100.0, 0.0, 3)
    assert list(table["Year"]) == [0, 1, 2, 3]
    assert list(table["Invested"]) == pytest.approx([0.0, 1200.0, 2400.0, 3600.0])
    assert table.loc[0, "Value"] == 0.0
