from django.conf import settings

SUFFIX_LENGTH = 6
BASE = 36
BOUND = 999
DIGITS = '0123456789abcdefghijklmnopqrstuvwxyz'


def parse_base36_prefix(text):
    """Value of the longest leading run of base-36 digits, or None if there is none."""
    end = 0
    for char in text.lower():
        if char not in DIGITS:
            break
        end += 1
    if end == 0:
        return None
    return int(text[:end], BASE)


def receipt_counter(order_id):
    suffix = str(order_id)[-SUFFIX_LENGTH:].upper()
    value = parse_base36_prefix(suffix)
    if value is None:
        return 1
    return value % BOUND + 1


def receipt_number(order_id, prefix=None):
    """
    Short human-facing receipt code derived from the order id, e.g. ``BPR 007``.

    The same order id always yields the same code. Unrelated orders may
    share a code; lookups go through the order id.
    """
    if prefix is None:
        prefix = settings.POS_RECEIPT_PREFIX
    return f"{prefix} {receipt_counter(order_id):03d}"
