from rest_framework import status, generics
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.views import APIView
from django.conf import settings
from django.db import DatabaseError, InterfaceError, transaction
from django.db.models import Count, Sum
from django.db.models.functions import TruncDate
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from datetime import timedelta
from decimal import Decimal
import logging

from authentication.permissions import IsOrderOwnerOrAdmin, IsStaffMember
from inventory.models import MenuItem
from receipts.issuer import ReceiptIssuer
from .builder import NOTICE_INSUFFICIENT_STOCK, NOTICE_REMOVED
from .drafts import discard_draft, load_draft, save_draft
from .models import Order
from .serializers import (
    CheckoutSerializer, DraftAddItemSerializer, DraftContextSerializer,
    DraftUpdateItemSerializer, OrderReadSerializer, OrderStatusSerializer,
    OrderSummarySerializer, SettleOrderSerializer, serialize_draft
)
from .settlement import CODE_VALIDATION_ERROR, SettlementEngine
from .signals import notify_order_status_changed

logger = logging.getLogger(__name__)


def orders_visible_to(user):
    queryset = Order.objects.select_related('waiter', 'receipt').prefetch_related('items')
    if user.is_admin:
        return queryset
    return queryset.filter(waiter=user)


def settlement_response(result, order=None, receipt=None):
    if result.success:
        return Response({
            **result.as_dict(),
            'receipt_number': receipt.receipt_number if receipt else None,
            'order': OrderReadSerializer(order).data if order else None,
        }, status=status.HTTP_201_CREATED)

    if result.code == CODE_VALIDATION_ERROR:
        return Response(result.as_dict(), status=status.HTTP_400_BAD_REQUEST)
    return Response(result.as_dict(), status=status.HTTP_409_CONFLICT)


class SettlementMixin:
    engine_class = SettlementEngine
    issuer_class = ReceiptIssuer

    def get_engine(self):
        return self.engine_class()

    def finish_settlement(self, result):
        if not result.success:
            return settlement_response(result)
        # The order is committed; a fault from here on must not invite a second settlement
        order = receipt = None
        try:
            order = Order.objects.select_related('waiter').prefetch_related('items').get(pk=result.order_id)
            receipt, _ = self.issuer_class().issue(order)
        except (DatabaseError, InterfaceError):
            logger.exception("Receipt for settled order %s could not be issued", result.order_id)
        return settlement_response(result, order=order, receipt=receipt)


class SettleOrderView(SettlementMixin, APIView):
    """Settle an order in one request: check and take stock, record payment, issue the receipt."""
    permission_classes = [IsStaffMember]

    @swagger_auto_schema(
        operation_description="Settle an order. Stock is checked and decremented atomically.",
        request_body=SettleOrderSerializer,
        responses={
            201: openapi.Response(description="Order settled"),
            400: openapi.Response(description="Validation error"),
            409: openapi.Response(description="Insufficient stock; items lists the names"),
            503: openapi.Response(description="Database fault, safe to retry"),
        }
    )
    def post(self, request, *args, **kwargs):
        serializer = SettleOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = self.get_engine().settle(
            serializer.settlement_lines(),
            data['payment_method'],
            waiter=request.user,
            table_number=data['table_number'],
            customer_name=data['customer_name'],
            special_instructions=data['special_instructions'],
        )
        return self.finish_settlement(result)


class OrderListView(generics.ListAPIView):
    """List settled orders; waiters only see their own"""
    serializer_class = OrderReadSerializer
    permission_classes = [IsStaffMember]
    filterset_fields = ['status', 'payment_method', 'table_number']

    def get_queryset(self):
        queryset = orders_visible_to(self.request.user)

        date_filter = self.request.query_params.get('date')
        if date_filter:
            queryset = queryset.filter(created_at__date=date_filter)

        return queryset.order_by('-created_at')

    @swagger_auto_schema(
        manual_parameters=[
            openapi.Parameter('status', openapi.IN_QUERY, description="Filter by order status", type=openapi.TYPE_STRING),
            openapi.Parameter('payment_method', openapi.IN_QUERY, description="cash or card", type=openapi.TYPE_STRING),
            openapi.Parameter('date', openapi.IN_QUERY, description="Filter by date (YYYY-MM-DD)", type=openapi.TYPE_STRING),
        ]
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class OrderDetailView(generics.RetrieveAPIView):
    serializer_class = OrderReadSerializer
    permission_classes = [IsStaffMember, IsOrderOwnerOrAdmin]

    def get_queryset(self):
        return orders_visible_to(self.request.user)


@swagger_auto_schema(
    method='patch',
    operation_description="Move an order forward through the kitchen workflow",
    request_body=OrderStatusSerializer,
    responses={200: OrderReadSerializer, 400: 'Invalid transition', 404: 'Order not found'}
)
@api_view(['PATCH'])
@permission_classes([IsStaffMember])
def update_order_status(request, pk):
    with transaction.atomic():
        order = get_object_or_404(orders_visible_to(request.user).select_for_update(of=('self',)), pk=pk)
        serializer = OrderStatusSerializer(data=request.data, context={'order': order})
        serializer.is_valid(raise_exception=True)

        previous = order.status
        order.status = serializer.validated_data['status']
        order.save(update_fields=['status', 'updated_at'])
        notify_order_status_changed(Order, order, previous)

    logger.info("Order %s moved from %s to %s by %s", order.pk, previous, order.status, request.user.email)
    return Response(OrderReadSerializer(order).data)


@api_view(['GET'])
@permission_classes([IsStaffMember])
def active_orders(request):
    """Orders still moving through the kitchen, oldest first"""
    orders = orders_visible_to(request.user).filter(
        status__in=Order.ACTIVE_STATUSES
    ).order_by('created_at')
    return Response(OrderReadSerializer(orders, many=True).data)


@swagger_auto_schema(
    method='get',
    operation_description="Sales statistics for the dashboard",
    manual_parameters=[
        openapi.Parameter('days', openapi.IN_QUERY, description="Days of history (default 7)", type=openapi.TYPE_INTEGER),
    ]
)
@api_view(['GET'])
@permission_classes([IsStaffMember])
def order_statistics(request):
    try:
        days = max(1, min(int(request.query_params.get('days', 7)), 366))
    except ValueError:
        return Response({'error': 'days must be an integer'}, status=status.HTTP_400_BAD_REQUEST)

    today = timezone.localdate()
    start = today - timedelta(days=days - 1)
    orders = orders_visible_to(request.user).filter(created_at__date__gte=start)

    totals = orders.aggregate(order_count=Count('id'), revenue=Sum('total'), tax=Sum('tax_amount'))

    per_day = {
        row['day']: row
        for row in orders.annotate(day=TruncDate('created_at')).values('day').annotate(
            orders=Count('id'), revenue=Sum('total')
        )
    }
    daily = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        row = per_day.get(day, {})
        daily.append({
            'date': day.isoformat(),
            'orders': row.get('orders', 0),
            'revenue': str(row.get('revenue') or Decimal('0.00')),
        })

    by_payment = {
        row['payment_method']: {'orders': row['orders'], 'revenue': str(row['revenue'] or Decimal('0.00'))}
        for row in orders.values('payment_method').annotate(orders=Count('id'), revenue=Sum('total'))
    }

    return Response({
        'days': days,
        'order_count': totals['order_count'] or 0,
        'revenue': str(totals['revenue'] or Decimal('0.00')),
        'tax_collected': str(totals['tax'] or Decimal('0.00')),
        'average_order_value': str(
            (totals['revenue'] / totals['order_count']).quantize(Decimal('0.01'))
            if totals['order_count'] else Decimal('0.00')
        ),
        'by_payment_method': by_payment,
        'daily': daily,
        'active_orders': orders_visible_to(request.user).filter(status__in=Order.ACTIVE_STATUSES).count(),
    })


@swagger_auto_schema(
    method='get',
    operation_description="Orders and stock changed since a timestamp, for clients without push updates",
    manual_parameters=[
        openapi.Parameter('since', openapi.IN_QUERY, description="ISO 8601 timestamp", type=openapi.TYPE_STRING, required=True),
    ]
)
@api_view(['GET'])
@permission_classes([IsStaffMember])
def order_changes(request):
    since_raw = request.query_params.get('since')
    since = parse_datetime(since_raw) if since_raw else None
    if since is None:
        return Response({'error': 'since must be an ISO 8601 timestamp'}, status=status.HTTP_400_BAD_REQUEST)
    if timezone.is_naive(since):
        since = timezone.make_aware(since)

    server_time = timezone.now()
    orders = orders_visible_to(request.user).filter(updated_at__gt=since).order_by('updated_at')
    stock = MenuItem.objects.filter(updated_at__gt=since).order_by('updated_at').values(
        'id', 'name', 'stock_quantity', 'is_available'
    )
    return Response({
        'server_time': server_time,
        'poll_interval': settings.POS_SYNC_POLL_INTERVAL,
        'orders': OrderSummarySerializer(orders, many=True).data,
        'menu_items': [
            {**row, 'id': str(row['id'])}
            for row in stock
        ],
    })


# =============== DRAFT ORDERS ===============

def draft_response(builder, result=None, status_code=status.HTTP_200_OK):
    data = {'draft': serialize_draft(builder)}
    if result is not None:
        data['ok'] = result.ok
        data['notice'] = result.notice
        data['message'] = result.message
    return Response(data, status=status_code)


class DraftOrderView(APIView):
    """
    get: The current in-progress order
    patch: Update table number, customer name or instructions
    delete: Discard the in-progress order
    """
    permission_classes = [IsStaffMember]

    def get(self, request):
        return draft_response(load_draft(request))

    def patch(self, request):
        serializer = DraftContextSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        builder = load_draft(request)
        builder.set_context(**serializer.validated_data)
        save_draft(request, builder)
        return draft_response(builder)

    def delete(self, request):
        discard_draft(request)
        return Response(status=status.HTTP_204_NO_CONTENT)


@swagger_auto_schema(method='post', request_body=DraftAddItemSerializer)
@api_view(['POST'])
@permission_classes([IsStaffMember])
def add_draft_item(request):
    serializer = DraftAddItemSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    menu_item = get_object_or_404(MenuItem, pk=data['menu_item_id'])
    builder = load_draft(request)
    result = builder.add_item(menu_item, data['quantity'], data['special_requests'])
    if not result.ok:
        return draft_response(builder, result, status.HTTP_409_CONFLICT
                              if result.notice == NOTICE_INSUFFICIENT_STOCK else status.HTTP_400_BAD_REQUEST)

    save_draft(request, builder)
    return draft_response(builder, result, status.HTTP_201_CREATED)


@swagger_auto_schema(method='patch', request_body=DraftUpdateItemSerializer)
@api_view(['PATCH', 'DELETE'])
@permission_classes([IsStaffMember])
def draft_item_detail(request, line_id):
    builder = load_draft(request)
    if builder.get_line(line_id) is None:
        return Response({'error': 'Line not found'}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'DELETE':
        builder.remove_item(line_id)
        save_draft(request, builder)
        return draft_response(builder)

    serializer = DraftUpdateItemSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    result = None
    if 'special_requests' in data:
        result = builder.set_special_requests(line_id, data['special_requests'])
    if 'quantity' in data:
        result = builder.update_quantity(line_id, data['quantity'])
        if result.notice == NOTICE_REMOVED:
            logger.debug("Line %s removed from draft", line_id)

    save_draft(request, builder)
    return draft_response(builder, result)


class DraftCheckoutView(SettlementMixin, APIView):
    """
    Settle the in-progress order. On rejection the draft is left as it was
    so the waiter can adjust quantities and retry.
    """
    permission_classes = [IsStaffMember]

    @swagger_auto_schema(request_body=CheckoutSerializer)
    def post(self, request, *args, **kwargs):
        serializer = CheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        builder = load_draft(request)
        result = self.get_engine().settle_builder(
            builder, serializer.validated_data['payment_method'], waiter=request.user
        )
        if result.success:
            builder.clear()
            save_draft(request, builder)
        return self.finish_settlement(result)
