from rest_framework import status
from rest_framework.exceptions import APIException


class PersistenceFault(APIException):
    """
    The settlement attempt failed in the database. Nothing was committed, so
    the caller may retry the identical attempt.
    """
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'The order could not be saved. Please try again.'
    default_code = 'persistence_fault'


class StockShortfall(Exception):
    """Raised inside the settlement transaction to roll it back."""

    def __init__(self, items):
        super().__init__(", ".join(items))
        self.items = items


class MenuItemsMissing(StockShortfall):
    """Menu items were deleted after the order was checked; ``items`` holds their ids."""
