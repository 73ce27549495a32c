"""Template tags rendering the article PDF trigger button."""

from typing import Any

from django import template
from django.urls import NoReverseMatch, reverse

from article_pdf.tokens import create_token

register = template.Library()


def _item_id(item: Any) -> Any:
    return getattr(item, "pk", None) or getattr(item, "id", None) or item


@register.inclusion_tag("article_pdf/button.html", takes_context=True)
def article_pdf_button(context, item, auto_open=False):
    """
    Render the "Generate PDF" button for ``item``.

    The button carries the item identifier and a token issued for the
    current user, plus the loading indicator and the message region.

    Usage:
        {% load article_pdf %}
        {% article_pdf_button post %}
    """
    request = context.get("request")
    actor = getattr(request, "user", None) if request is not None else context.get("user")
    try:
        ajax_url = reverse("article_pdf:ajax")
    except NoReverseMatch:
        ajax_url = ""
    return {
        "post_id": _item_id(item),
        "nonce": create_token(actor=actor),
        "ajax_url": ajax_url,
        "auto_open": bool(auto_open),
    }

