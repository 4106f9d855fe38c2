from django.urls import path
from . import views


urlpatterns = [
    path('items/', views.MenuItemListCreateView.as_view(), name='menu-item-list-create'),
    path('items/<uuid:pk>/', views.MenuItemRetrieveUpdateDestroyView.as_view(), name='menu-item-detail'),
    path('items/<uuid:pk>/stock/', views.adjust_menu_item_stock, name='menu-item-stock'),
    path('low-stock/', views.low_stock_items, name='menu-low-stock'),
]
