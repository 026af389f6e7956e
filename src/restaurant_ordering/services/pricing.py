"""Pricing engine for cart line items.

All price computation for cart, product detail and order history views goes
through this module so they can never disagree on a price. Values keep full
Decimal precision; rounding to cents happens only at the monetary boundary
(quantize_money / format_currency).
"""

from decimal import ROUND_HALF_UP, Decimal

from restaurant_ordering.errors import InvalidCustomizationError
from restaurant_ordering.models.catalog_models import Product
from restaurant_ordering.models.order_models import CustomizationSelection

CENTS = Decimal("0.01")


def active_unit_price(product: Product) -> Decimal:
    """Return the promotion price when active, otherwise the base price."""
    return product.active_price


def customization_delta(product: Product, selections: list[CustomizationSelection]) -> Decimal:
    """Sum the per-unit price deltas of the selected customization items.

    Option or item ids that the product no longer declares contribute zero, so
    cart lines referencing deleted customizations keep working.
    """
    delta = Decimal("0")
    for selection in selections:
        option = product.find_option(selection.option_id)
        if option is None:
            continue
        for item_id in selection.selected_item_ids:
            item = option.find_item(item_id)
            if item is not None:
                delta += item.price
    return delta


def unit_price_with_customizations(
    product: Product, selections: list[CustomizationSelection]
) -> Decimal:
    """Price of a single configured unit."""
    return active_unit_price(product) + customization_delta(product, selections)


def compute_line_total(
    product: Product, quantity: int, selections: list[CustomizationSelection]
) -> Decimal:
    """Compute the total price of a line item.

    Quantity is not clamped; callers are responsible for passing at least 1.

    Args:
        product: Product snapshot being priced
        quantity: Number of units
        selections: Customization selections for the line

    Returns:
        Decimal: (active price + customization deltas) * quantity
    """
    return unit_price_with_customizations(product, selections) * quantity


def initial_selections(product: Product) -> list[CustomizationSelection]:
    """Build the starting selection for a product detail view.

    Required single-select options start with their first item chosen; every
    other option starts empty.
    """
    selections = []
    for option in product.customization_options:
        if option.required and not option.multi_select and option.items:
            selections.append(
                CustomizationSelection(option_id=option.id, selected_item_ids=[option.items[0].id])
            )
        else:
            selections.append(CustomizationSelection(option_id=option.id, selected_item_ids=[]))
    return selections


def validate_selections(product: Product, selections: list[CustomizationSelection]) -> None:
    """Validate selections against the product's declared options.

    Raises:
        InvalidCustomizationError: If an option or item is unknown, a
            single-select option has several items, an option appears twice,
            or a required option has no selection
    """
    chosen: dict[str, list[str]] = {}
    for selection in selections:
        option = product.find_option(selection.option_id)
        if option is None:
            raise InvalidCustomizationError(
                f"Option {selection.option_id} does not belong to product {product.id}"
            )
        if selection.option_id in chosen:
            raise InvalidCustomizationError(f"Option {option.name} is selected more than once")
        for item_id in selection.selected_item_ids:
            if option.find_item(item_id) is None:
                raise InvalidCustomizationError(
                    f"Item {item_id} does not belong to option {option.name}"
                )
        if not option.multi_select and len(selection.selected_item_ids) > 1:
            raise InvalidCustomizationError(f"Option {option.name} allows a single choice")
        chosen[selection.option_id] = selection.selected_item_ids

    missing = [
        option.name
        for option in product.customization_options
        if option.required and not chosen.get(option.id)
    ]
    if missing:
        raise InvalidCustomizationError(
            f"Please select all required options: {', '.join(missing)}"
        )


def compact_selections(selections: list[CustomizationSelection]) -> list[CustomizationSelection]:
    """Drop options with nothing selected, as the cart stores them."""
    return [s for s in selections if s.selected_item_ids]


def quantize_money(value: Decimal) -> Decimal:
    """Round a monetary value to cents."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def format_currency(value: Decimal) -> str:
    """Format a value as Brazilian reais, e.g. ``R$ 1.234,50``."""
    amount = quantize_money(value)
    sign = "-" if amount < 0 else ""
    integer_part, _, cents = f"{abs(amount):.2f}".partition(".")
    groups = []
    while len(integer_part) > 3:
        groups.insert(0, integer_part[-3:])
        integer_part = integer_part[:-3]
    groups.insert(0, integer_part)
    return f"{sign}R$ {'.'.join(groups)},{cents}"
