"""
Storage for the waiter's in-progress order.

Drafts are kept per staff account, not per session, so bearer-token clients
without cookies keep the same draft across requests.
"""
from .builder import OrderBuilder
from .models import DraftOrder


def load_draft(request):
    draft = DraftOrder.objects.filter(waiter=request.user).first()
    if draft is None or not draft.data:
        return OrderBuilder()
    return OrderBuilder.from_dict(draft.data)


def save_draft(request, builder):
    DraftOrder.objects.update_or_create(waiter=request.user, defaults={'data': builder.to_dict()})


def discard_draft(request):
    DraftOrder.objects.filter(waiter=request.user).delete()
