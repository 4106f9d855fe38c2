from django.contrib import admin
from django.urls import path, include
from drf_yasg.views import get_schema_view
from drf_yasg import openapi
from rest_framework import permissions

# Setup Swagger schema view
schema_view = get_schema_view(
    openapi.Info(
        title='API Documentation BAR POS',
        default_version='v1',
        description="API for menu, order entry, settlement and receipts",
    ),
    public=True,
    permission_classes=(permissions.AllowAny,),
)

urlpatterns = [
    path('admin/', admin.site.urls),
    path("", include("authentication.urls")),
    path("menu/", include("inventory.urls")),
    path("orders/", include('orders.urls')),
    path("receipts/", include('receipts.urls')),
    path('swagger/', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
]
