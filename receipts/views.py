from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from drf_yasg.utils import swagger_auto_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response

from authentication.permissions import IsStaffMember
from orders.models import Order
from .issuer import ReceiptIssuer
from .serializers import ReceiptSerializer


def get_order_for(request, order_id):
    order = get_object_or_404(Order.objects.select_related('waiter'), pk=order_id)
    if not request.user.is_admin and order.waiter_id != request.user.id:
        raise PermissionDenied("You can only access receipts for your own orders.")
    return order


@swagger_auto_schema(
    method='post',
    operation_description="Issue the receipt for a settled order. Issuing twice returns the same receipt.",
    responses={201: ReceiptSerializer, 200: ReceiptSerializer, 404: 'Order not found'}
)
@swagger_auto_schema(method='get', responses={200: ReceiptSerializer, 404: 'Receipt not issued'})
@api_view(['GET', 'POST'])
@permission_classes([IsStaffMember])
def order_receipt(request, order_id):
    order = get_order_for(request, order_id)
    issuer = ReceiptIssuer()

    if request.method == 'POST':
        receipt, created = issuer.issue(order)
        return Response(
            ReceiptSerializer(receipt).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )

    receipt = issuer.get(order.pk)
    if receipt is None:
        return Response(
            {'error': 'Receipt has not been issued for this order'},
            status=status.HTTP_404_NOT_FOUND
        )
    return Response(ReceiptSerializer(receipt).data)


@api_view(['GET'])
@permission_classes([IsStaffMember])
def print_receipt(request, order_id):
    """Printable HTML receipt. Renders an unsaved receipt if none was issued yet."""
    order = get_order_for(request, order_id)
    html = ReceiptIssuer().render(order, fmt='html')
    return HttpResponse(html, content_type='text/html; charset=utf-8')


@api_view(['GET'])
@permission_classes([IsStaffMember])
def receipt_text(request, order_id):
    order = get_order_for(request, order_id)
    text = ReceiptIssuer().render(order, fmt='text')
    return HttpResponse(text, content_type='text/plain; charset=utf-8')
