from rest_framework import generics, status, permissions
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.views import APIView
from django.utils import timezone
from drf_spectacular.utils import extend_schema, OpenApiExample
import logging

from .exceptions import AuthExpired
from .models import CustomUser
from .permissions import IsAdminRole, IsStaffMember
from .providers import default_auth_provider
from .serializers import LoginSerializer, LogoutSerializer, ProfileSerializer, UserSerializer

logger = logging.getLogger(__name__)


# =============== AUTHENTICATION VIEWS ===============

class LoginView(APIView):
    """
    JWT login for staff. Returns an access/refresh pair along with the
    user's profile and role.
    """
    permission_classes = [permissions.AllowAny]
    auth_provider = default_auth_provider

    @extend_schema(
        summary="Staff Login with JWT Token",
        request=LoginSerializer,
        responses={
            200: {
                'type': 'object',
                'properties': {
                    'refresh': {'type': 'string', 'description': 'JWT refresh token'},
                    'access': {'type': 'string', 'description': 'JWT access token'},
                    'user': {'type': 'object', 'description': 'User information'},
                    'role': {'type': 'string', 'description': 'admin or waiter'},
                }
            },
            400: {'description': 'Invalid credentials or disabled account'},
        },
        examples=[
            OpenApiExample(
                'Waiter Login',
                value={"email": "waiter@bar.com", "password": "SecurePassword123!"}
            )
        ]
    )
    def post(self, request, *args, **kwargs):
        serializer = LoginSerializer(data=request.data, context={'auth_provider': self.auth_provider})
        serializer.is_valid(raise_exception=True)
        user = serializer.validated_data['user']

        tokens = self.auth_provider.issue_tokens(user)
        logger.info("Staff %s signed in", user.staff_code or user.email)

        return Response({
            **tokens,
            'user': ProfileSerializer(user).data,
            'role': user.role,
        }, status=status.HTTP_200_OK)


class LogoutView(APIView):
    """Blacklist the refresh token so the session cannot be renewed."""
    permission_classes = [permissions.IsAuthenticated]
    auth_provider = default_auth_provider

    @extend_schema(summary="Sign out", request=LogoutSerializer, responses={205: None})
    def post(self, request, *args, **kwargs):
        serializer = LogoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.auth_provider.sign_out(serializer.validated_data['refresh'])
        return Response(status=status.HTTP_205_RESET_CONTENT)


class MyProfileView(generics.RetrieveAPIView):
    serializer_class = ProfileSerializer
    permission_classes = [IsStaffMember]
    auth_provider = default_auth_provider

    def get_object(self):
        user = self.auth_provider.get_current_user(self.request)
        if user is None:
            raise AuthExpired()
        return user


# =============== STAFF MANAGEMENT ===============

class StaffListCreateView(generics.ListCreateAPIView):
    """
    get: List staff accounts (administrators only)
    post: Create a waiter or admin account
    """
    queryset = CustomUser.objects.all()
    serializer_class = UserSerializer
    permission_classes = [IsAdminRole]
    filterset_fields = ['role', 'is_active']

    def perform_create(self, serializer):
        user = serializer.save()
        logger.info("Admin %s created %s account %s", self.request.user.email, user.role, user.email)


class StaffDetailView(generics.RetrieveUpdateDestroyAPIView):
    """
    Deleting a staff account deactivates it; settled orders keep their waiter.
    """
    queryset = CustomUser.objects.all()
    serializer_class = UserSerializer
    permission_classes = [IsAdminRole]
    lookup_url_kwarg = 'user_id'

    def perform_destroy(self, instance):
        instance.is_active = False
        instance.save(update_fields=['is_active'])
        logger.info("Admin %s deactivated account %s", self.request.user.email, instance.email)


@api_view(['GET'])
@permission_classes([permissions.AllowAny])
def health_check(request):
    return Response({'status': 'ok', 'time': timezone.now()})
