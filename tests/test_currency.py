import pytest

from cricauction.ledger import format_price, parse_price_label


@pytest.mark.parametrize(
    "label, expected",
    [
        ("₹15Cr", 150_000_000),
        ("₹80L", 8_000_000),
        ("2,500,000", 2_500_000),
        ("1.5 cr", 15_000_000),
        ("100000000", 100_000_000),
        (750000, 750_000),
    ],
)
def test_parse_price_label(label, expected):
    assert parse_price_label(label) == expected


def test_parse_price_label_rejects_garbage():
    with pytest.raises(ValueError):
        parse_price_label("ten lakh")


def test_format_price_picks_unit():
    assert format_price(150_000_000) == "₹15.0Cr"
    assert format_price(8_000_000) == "₹80.0L"
    assert format_price(50_000) == "₹50,000"


@pytest.mark.parametrize("label", ["1e400", "inf", "nan", "1e400Cr", float("inf")])
def test_parse_price_label_rejects_non_finite(label):
    with pytest.raises(ValueError):
        parse_price_label(label)
