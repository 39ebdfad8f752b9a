"""Tests for per-run pagination state."""
from olx_monitor.jobs.session import SearchSession


def test_price_statistics():
    """Test running min, max and average."""
    session = SearchSession(url="https://www.olx.com.br/celulares")
    for price in (300, 100, 200):
        session.record_price(price)

    assert session.valid_ads == 3
    assert session.min_price == 100
    assert session.max_price == 300
    assert session.average_price == 200


def test_zero_price_counts_as_minimum():
    """Test that a zero price is a real minimum."""
    session = SearchSession(url="u")
    session.record_price(500)
    session.record_price(0)
    assert session.min_price == 0


def test_apply_total_lowers_ceiling():
    """Test that the ceiling is the smaller of total and cap."""
    session = SearchSession(url="u", max_ads_limit=500)
    session.apply_total(42, cap=500)
    assert session.max_ads_limit == 42
    assert session.total_of_ads == 42

    session.apply_total(10000, cap=500)
    assert session.max_ads_limit == 500


def test_limit_reached():
    """Test ceiling tracking."""
    session = SearchSession(url="u", max_ads_limit=2)
    session.record_price(1)
    assert not session.limit_reached
    assert session.remaining == 1
    session.record_price(2)
    assert session.limit_reached
    assert session.remaining == 0


def test_summary_requires_valid_listings():
    """Test that no summary is built without valid listings."""
    session = SearchSession(url="u")
    session.ads_found = 5
    assert session.to_summary() is None
    assert session.average_price == 0.0


def test_summary_values():
    """Test summary fields."""
    session = SearchSession(url="https://www.olx.com.br/celulares?q=iphone")
    session.record_price(1000)
    session.record_price(2000)
    summary = session.to_summary()

    assert summary.url == "https://www.olx.com.br/celulares?q=iphone"
    assert summary.ads_found == 2
    assert summary.average_price == 1500
    assert summary.min_price == 1000
    assert summary.max_price == 2000
    assert session.get_summary()["valid_ads"] == 2
