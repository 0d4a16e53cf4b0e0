from rentfinder.models.property import PriceType


def _amount(value: float) -> str:
    return f"{value:,.0f}" if float(value).is_integer() else f"{value:,.2f}"


def format_price(price: float, price_type: PriceType) -> str:
    """
    Display a price for a listing card.

    Monthly prices read "$2,500/mo"; totals of a million or more are shown in
    millions ("$1.25M"), smaller totals in full ("$850,000").
    """
    if PriceType(price_type) == PriceType.MONTHLY:
        return f"${_amount(price)}/mo"
    if price >= 1_000_000:
        return f"${price / 1_000_000:.2f}M"
    return f"${_amount(price)}"
