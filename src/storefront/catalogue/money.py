"""Money helpers. Amounts are integers in minor currency units (paise)."""

CURRENCY = "INR"
CURRENCY_SYMBOL = "₹"


def format_price(amount) -> str:
    """Render paise as rupees, e.g. ``49900`` → ``"₹499.00"``. Non-numbers render empty."""
    if isinstance(amount, bool) or not isinstance(amount, int | float):
        return ""
    return f"{CURRENCY_SYMBOL}{amount / 100:.2f}"
