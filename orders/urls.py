from django.urls import path
from . import views

app_name = 'orders'

urlpatterns = [
    # Settlement
    path('settle/', views.SettleOrderView.as_view(), name='order-settle'),

    # Orders
    path('', views.OrderListView.as_view(), name='order-list'),
    path('<uuid:pk>/', views.OrderDetailView.as_view(), name='order-detail'),
    path('<uuid:pk>/status/', views.update_order_status, name='order-status'),
    path('active/', views.active_orders, name='active-orders'),
    path('statistics/', views.order_statistics, name='order-statistics'),
    path('changes/', views.order_changes, name='order-changes'),

    # Draft order
    path('draft/', views.DraftOrderView.as_view(), name='draft'),
    path('draft/items/', views.add_draft_item, name='draft-items'),
    path('draft/items/<str:line_id>/', views.draft_item_detail, name='draft-item-detail'),
    path('draft/checkout/', views.DraftCheckoutView.as_view(), name='draft-checkout'),
]
