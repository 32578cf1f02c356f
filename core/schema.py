from rest_framework.permissions import AllowAny
from rest_framework.renderers import JSONOpenAPIRenderer
from rest_framework.response import Response
from rest_framework.schemas.openapi import AutoSchema
from rest_framework.schemas.openapi import SchemaGenerator
from rest_framework.views import APIView


class SopnoSetuAutoSchema(AutoSchema):
    def get_operation_id(self, path, method):
        base = super().get_operation_id(path, method)
        return f"{base}{method.capitalize()}"


PUBLIC_PATHS = {
    "/api/login/",
    "/api/token/refresh/",
    "/api/auth/register/",
    "/api/auth/forgot-password/",
    "/api/auth/reset-password/{token}/",
    "/api/auth/users/{user_id}/",
    "/api/mentors/",
    "/api/mentors/{id}/",
    "/api/mentors/by-user/{user_id}/",
    "/api/reviews/mentor/{mentor_id}/",
    "/api/upload/public/",
    "/api/schema/",
}

# Public only for the listed methods; other methods on the path need a token.
PUBLIC_METHODS = {
    "/api/admin/settings/": {"get"},
}

TAG_ORDER = {
    "Auth": 0,
    "Mentors": 1,
    "Sessions": 2,
    "Subscriptions": 3,
    "Chat": 4,
    "Notifications": 5,
    "Reviews": 6,
    "Admin": 7,
    "General": 8,
}

TAG_DESCRIPTIONS = {
    "Auth": "Registration, login, profile and password reset.",
    "Mentors": "Public mentor directory and the mentor's own profile.",
    "Sessions": "Booking and session status updates.",
    "Subscriptions": "Plan purchase and primary mentor selection.",
    "Chat": "Persisted chat messages between students and mentors.",
    "Notifications": "Polling notifications.",
    "Reviews": "Mentor reviews and ratings.",
    "Admin": "Verification, settlement, settings and moderation.",
    "General": "Other endpoints.",
}

PREFIX_TAGS = (
    ("/api/login/", "Auth"),
    ("/api/token/", "Auth"),
    ("/api/auth/", "Auth"),
    ("/api/mentors/", "Mentors"),
    ("/api/sessions/", "Sessions"),
    ("/api/subscriptions/", "Subscriptions"),
    ("/api/chat/", "Chat"),
    ("/api/notifications/", "Notifications"),
    ("/api/reviews/", "Reviews"),
    ("/api/admin/", "Admin"),
    ("/api/reports/", "Admin"),
)


def tag_for_path(path: str) -> str:
    for prefix, tag in PREFIX_TAGS:
        if path.startswith(prefix):
            return tag
    return "General"


def is_public_operation(path: str, method: str) -> bool:
    if path in PUBLIC_PATHS:
        return True
    return method.lower() in PUBLIC_METHODS.get(path, set())


class SopnoSetuSchemaView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    renderer_classes = [JSONOpenAPIRenderer]

    def get(self, request, *args, **kwargs):
        generator = SchemaGenerator(
            title="SopnoSetu API",
            description="Backend APIs for the SopnoSetu mentorship marketplace.",
            version="1.0.0",
        )
        schema = generator.get_schema(request=request, public=True)
        if not schema:
            return Response({})

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes["HTTPBearer"] = {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }

        schema["tags"] = [
            {"name": name, "description": TAG_DESCRIPTIONS[name]}
            for name in sorted(TAG_ORDER, key=TAG_ORDER.get)
        ]

        path_tags = {}
        for path in schema.get("paths", {}):
            path_tags[path] = tag_for_path(path)

        for path, operations in schema.get("paths", {}).items():
            for method, operation in operations.items():
                if method.lower() not in {"get", "post", "put", "patch", "delete"}:
                    continue
                operation["tags"] = [path_tags[path]]
                if is_public_operation(path, method):
                    operation.pop("security", None)
                else:
                    operation["security"] = [{"HTTPBearer": []}]

        sorted_paths = {}
        for path in sorted(
            schema.get("paths", {}).keys(),
            key=lambda item: (TAG_ORDER.get(path_tags[item], 99), item),
        ):
            sorted_paths[path] = schema["paths"][path]
        schema["paths"] = sorted_paths

        return Response(schema)
