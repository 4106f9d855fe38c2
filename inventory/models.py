from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from decimal import Decimal
import uuid


class MenuItem(models.Model):
    TYPE_FOOD = 'food'
    TYPE_DRINK = 'drink'
    TYPE_CHOICES = [
        (TYPE_FOOD, 'Food'),
        (TYPE_DRINK, 'Drink'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, unique=True)
    description = models.CharField(max_length=1000, blank=True)
    price = models.DecimalField(
        max_digits=10, decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    item_type = models.CharField(max_length=10, choices=TYPE_CHOICES, default=TYPE_FOOD)
    is_available = models.BooleanField(default=True)

    # Null means the item is not stock tracked
    stock_quantity = models.IntegerField(
        null=True, blank=True,
        validators=[MinValueValidator(0)]
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['item_type', 'name']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(stock_quantity__isnull=True) | models.Q(stock_quantity__gte=0),
                name='menu_item_stock_non_negative',
            ),
            models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name='menu_item_price_non_negative',
            ),
        ]

    def __str__(self):
        return self.name

    @property
    def is_stock_tracked(self):
        return self.stock_quantity is not None

    @property
    def is_low_stock(self):
        return self.is_stock_tracked and self.stock_quantity < settings.POS_LOW_STOCK_THRESHOLD

    @property
    def is_orderable(self):
        if not self.is_available:
            return False
        return not self.is_stock_tracked or self.stock_quantity > 0

    def clean(self):
        if self.item_type == self.TYPE_FOOD and self.stock_quantity is not None:
            raise ValidationError({'stock_quantity': 'Only drinks carry a stock count.'})
