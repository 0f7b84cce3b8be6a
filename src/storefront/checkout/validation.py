"""Checkout validation rules. Pure: the same draft always yields the same errors."""

import re

from storefront.checkout.draft import CheckoutDraft, PaymentMethod, ShippingMethod

_EMAIL = re.compile(r"\S+@\S+\.\S+")
_CARD_NUMBER = re.compile(r"^\d{12,19}$")
_CARD_EXPIRY = re.compile(r"^\d{2}/\d{2}$")
_CARD_CVV = re.compile(r"^\d{3,4}$")

MIN_PHONE_LENGTH = 7

# Longest value the stored order accepts for each customer field
FIELD_MAX_LENGTHS = {
    "full_name": 255,
    "email": 254,
    "phone": 30,
    "address1": 255,
    "address2": 255,
    "city": 100,
    "state": 100,
    "postal": 20,
    "country": 100,
}

EXPRESS_SHIPPING_COST = 19900

_SHIPPING_COSTS = {
    ShippingMethod.STANDARD.value: 0,
    ShippingMethod.EXPRESS.value: EXPRESS_SHIPPING_COST,
}


def shipping_cost_for(method) -> int:
    """Shipping charge in paise. Unknown methods ship at the standard rate."""
    if isinstance(method, ShippingMethod):
        method = method.value
    return _SHIPPING_COSTS.get(method, 0)


def validate_checkout(draft: CheckoutDraft) -> dict[str, str]:
    """Return ``{field: message}`` for every rule the draft breaks."""
    errors = {}
    if not draft.full_name.strip():
        errors["full_name"] = "Full name is required"
    if not draft.email.strip() or not _EMAIL.search(draft.email):
        errors["email"] = "Valid email required"
    if len(draft.phone.strip()) < MIN_PHONE_LENGTH:
        errors["phone"] = "Valid phone number required"
    if not draft.address1.strip():
        errors["address1"] = "Address is required"
    if not draft.city.strip():
        errors["city"] = "City is required"
    if not draft.postal.strip():
        errors["postal"] = "Postal code is required"

    for name, limit in FIELD_MAX_LENGTHS.items():
        if name not in errors and len(getattr(draft, name).strip()) > limit:
            errors[name] = f"Must be at most {limit} characters"

    if draft.payment_method == PaymentMethod.CARD.value:
        if not draft.card_name.strip():
            errors["card_name"] = "Name on card required"
        if not _CARD_NUMBER.match(re.sub(r"\s+", "", draft.card_number)):
            errors["card_number"] = "Card number looks invalid"
        if not _CARD_EXPIRY.match(draft.card_exp):
            errors["card_exp"] = "Expiry must be MM/YY"
        if not _CARD_CVV.match(draft.card_cvv):
            errors["card_cvv"] = "CVV is required"

    return errors
