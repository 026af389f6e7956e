"""WhatsApp message text for sharing an order."""

from urllib.parse import quote

from restaurant_ordering.models.order_models import Order
from restaurant_ordering.services.pricing import format_currency

WHATSAPP_SHARE_URL = "https://wa.me/?text="


def generate_order_message(order: Order, customer_name: str = "Cliente") -> str:
    """Render an order as WhatsApp text (pt-BR, bold markers with asterisks).

    Customization lines list item names only for options and items the line's
    product snapshot still declares.
    """
    lines = [
        "*Novo pedido via Carddz*",
        "",
        f"*Número do pedido:* {order.id}",
        f"*Cliente:* {customer_name}",
        f"*Telefone:* {order.contact_phone}",
    ]

    if order.delivery_address:
        lines.append(f"*Endereço de entrega:* {order.delivery_address}")

    lines.extend(["", "*Itens do pedido:*"])

    for index, item in enumerate(order.items, start=1):
        lines.append(
            f"{index}. {item.quantity}x {item.product.name} - {format_currency(item.total_price)}"
        )
        for selection in item.customizations:
            option = item.product.find_option(selection.option_id)
            if option is None:
                continue
            names = [i.name for i in option.items if i.id in selection.selected_item_ids]
            if names:
                lines.append(f"   - {option.name}: {', '.join(names)}")

    lines.extend(["", f"*Total do pedido:* {format_currency(order.total_price)}"])

    if order.notes:
        lines.extend(["", f"*Observações:* {order.notes}"])

    lines.extend(["", f"*Data do pedido:* {order.created_at.strftime('%d/%m/%Y %H:%M')}"])

    return "\n".join(lines)


def whatsapp_share_url(order: Order, customer_name: str = "Cliente") -> str:
    """Return a wa.me link pre-filled with the order message."""
    return WHATSAPP_SHARE_URL + quote(generate_order_message(order, customer_name), safe="")
