from django.contrib.auth import authenticate, get_user_model
from django.contrib.auth.models import update_last_login
from rest_framework import exceptions, serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenObtainPairView

from .models import UserProfile
from .permissions import user_role
from .serializers import UserProfileSerializer


def build_auth_token_payload(user):
    role = user_role(user)
    refresh = RefreshToken.for_user(user)
    refresh["role"] = role
    refresh["email"] = user.email
    access = refresh.access_token
    access["role"] = role
    access["email"] = user.email
    if api_settings.UPDATE_LAST_LOGIN:
        update_last_login(None, user)
    return {
        "refresh": str(refresh),
        "access": str(access),
    }


def build_auth_response(user, context=None):
    payload = build_auth_token_payload(user)
    profile = UserProfile.objects.filter(user=user).first()
    payload["user"] = UserProfileSerializer(profile, context=context or {}).data if profile else None
    return payload


class SopnoSetuTokenObtainPairSerializer(TokenObtainPairSerializer):
    password = serializers.CharField(write_only=True)

    default_error_messages = {
        "no_active_account": "Invalid credentials",
    }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields.pop("username", None)
        self.fields["email"] = serializers.EmailField(write_only=True)
        self.fields["password"] = serializers.CharField(write_only=True)

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token["role"] = user_role(user)
        token["email"] = user.email
        return token

    def validate(self, attrs):
        email = attrs.get("email", "").strip().lower()
        password = attrs.get("password", "")
        user_model = get_user_model()
        user = user_model.objects.filter(email__iexact=email).first()
        if not user:
            raise exceptions.AuthenticationFailed(
                self.error_messages["no_active_account"],
                "no_active_account",
            )

        authenticate_kwargs = {
            user_model.USERNAME_FIELD: getattr(user, user_model.USERNAME_FIELD),
            "password": password,
        }
        request = self.context.get("request")
        if request is not None:
            authenticate_kwargs["request"] = request

        self.user = authenticate(**authenticate_kwargs)
        if not api_settings.USER_AUTHENTICATION_RULE(self.user):
            raise exceptions.AuthenticationFailed(
                self.error_messages["no_active_account"],
                "no_active_account",
            )

        return build_auth_response(self.user, context=self.context)


class SopnoSetuTokenObtainPairView(TokenObtainPairView):
    serializer_class = SopnoSetuTokenObtainPairSerializer
