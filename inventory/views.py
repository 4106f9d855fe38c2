from rest_framework import generics, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from django.conf import settings
from django.shortcuts import get_object_or_404
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters
import logging

from authentication.permissions import IsAdminOrReadOnly, IsAdminRole, IsStaffMember
from .models import MenuItem
from .serializers import LowStockSerializer, MenuItemSerializer, StockAdjustmentSerializer
from .stock import adjust_stock, restock

logger = logging.getLogger(__name__)


class MenuItemListCreateView(generics.ListCreateAPIView):
    """
    get: List menu items (staff)
    post: Create a new menu item (administrators only)
    """
    queryset = MenuItem.objects.all()
    serializer_class = MenuItemSerializer
    permission_classes = [IsAdminOrReadOnly]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['item_type', 'is_available']
    search_fields = ['name', 'description']
    ordering_fields = ['name', 'price', 'stock_quantity', 'created_at']
    ordering = ['item_type', 'name']

    def perform_create(self, serializer):
        item = serializer.save()
        logger.info("Menu item %s created by %s", item.name, self.request.user.email)


class MenuItemRetrieveUpdateDestroyView(generics.RetrieveUpdateDestroyAPIView):
    """
    get: Menu item details (staff)
    put/patch: Update menu metadata (administrators only)
    delete: Delete a menu item (administrators only)
    """
    queryset = MenuItem.objects.all()
    serializer_class = MenuItemSerializer
    permission_classes = [IsAdminOrReadOnly]

    def perform_update(self, serializer):
        # Stock only moves through the guarded stock endpoint; an unchanged count is accepted
        stock_quantity = serializer.validated_data.pop('stock_quantity', serializer.instance.stock_quantity)
        if stock_quantity != serializer.instance.stock_quantity:
            raise ValidationError({
                'stock_quantity': f"Change stock through menu/items/{serializer.instance.pk}/stock/."
            })
        serializer.save()

    def destroy(self, request, *args, **kwargs):
        item = self.get_object()
        if item.order_items.exists():
            item.is_available = False
            item.save(update_fields=['is_available', 'updated_at'])
            return Response(
                {"detail": "Menu item has sales history; it was marked unavailable instead."},
                status=status.HTTP_200_OK
            )
        item.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAdminRole])
def adjust_menu_item_stock(request, pk):
    """Restock to an absolute count or apply a signed delta."""
    item = get_object_or_404(MenuItem, pk=pk)
    serializer = StockAdjustmentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    if item.item_type == MenuItem.TYPE_FOOD:
        return Response(
            {"detail": "Only drinks carry a stock count."},
            status=status.HTTP_400_BAD_REQUEST
        )

    if 'stock_quantity' in data:
        restock(item, data['stock_quantity'])
    elif not adjust_stock(item, data['delta']):
        return Response(
            {"detail": "Stock adjustment rejected: item is untracked or has too few units."},
            status=status.HTTP_409_CONFLICT
        )

    item.refresh_from_db()
    return Response(MenuItemSerializer(item).data)


@api_view(['GET'])
@permission_classes([IsStaffMember])
def low_stock_items(request):
    """Stock-tracked items below the low stock threshold."""
    items = MenuItem.objects.filter(
        stock_quantity__isnull=False,
        stock_quantity__lt=settings.POS_LOW_STOCK_THRESHOLD
    ).order_by('stock_quantity', 'name')
    return Response({
        'threshold': settings.POS_LOW_STOCK_THRESHOLD,
        'count': len(items),
        'items': LowStockSerializer(items, many=True).data,
    })
