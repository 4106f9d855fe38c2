from django.db import transaction
from django.dispatch import Signal

# Sent after commit with ``menu_item_ids``: a list of items whose stock changed
stock_changed = Signal()


def notify_stock_changed(sender, menu_item_ids):
    ids = list(menu_item_ids)
    if ids:
        transaction.on_commit(lambda: stock_changed.send(sender=sender, menu_item_ids=ids), robust=True)
