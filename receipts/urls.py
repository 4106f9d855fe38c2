from django.urls import path
from . import views

app_name = 'receipts'

urlpatterns = [
    path('<uuid:order_id>/', views.order_receipt, name='order-receipt'),
    path('<uuid:order_id>/print/', views.print_receipt, name='receipt-print'),
    path('<uuid:order_id>/text/', views.receipt_text, name='receipt-text'),
]
