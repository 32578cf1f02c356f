import warnings

from django.contrib.auth import get_user_model
from rest_framework.schemas.openapi import SchemaGenerator
from rest_framework.test import APITestCase

from core.models import MentorAvailabilitySlot, MentorProfile, Notification, Review, UserProfile
from core.schema import PUBLIC_METHODS, PUBLIC_PATHS, is_public_operation, tag_for_path


HTTP_METHODS = {"get", "post", "put", "patch", "delete"}

# Public endpoints that are safe to call anonymously with GET.
PUBLIC_GET_PATHS = {
    "/api/admin/settings/",
    "/api/auth/users/{user_id}/",
    "/api/mentors/",
    "/api/mentors/{id}/",
    "/api/mentors/by-user/{user_id}/",
    "/api/reviews/mentor/{mentor_id}/",
    "/api/schema/",
}


class ApiAutomationCoverageTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        User = get_user_model()
        cls.candidate_user = User.objects.create_user(
            username="candidate_automation",
            email="candidate.automation@example.com",
            password="CandidatePass123!",
        )
        cls.mentor_user = User.objects.create_user(
            username="mentor_automation",
            email="mentor.automation@example.com",
            password="MentorPass123!",
        )
        UserProfile.objects.create(user=cls.candidate_user, name="Candidate Automation", role="candidate")
        UserProfile.objects.create(
            user=cls.mentor_user,
            name="Mentor Automation",
            role="mentor",
            is_mentor_verified=True,
        )
        cls.mentor_profile = MentorProfile.objects.create(
            user=cls.mentor_user,
            university="Dhaka University",
            department="Physics",
        )
        MentorAvailabilitySlot.objects.create(
            mentor_profile=cls.mentor_profile,
            day="Friday",
            start_time="10:00",
            end_time="12:00",
        )
        cls.review = Review.objects.create(
            mentor=cls.mentor_user,
            candidate=cls.candidate_user,
            rating=5,
            comment="Automation review",
        )
        cls.notification = Notification.objects.create(
            recipient=cls.candidate_user,
            type="system",
            title="Automation",
            message="Automation notification",
        )

    def setUp(self):
        self.client.defaults["HTTP_HOST"] = "testserver"

    def _schema_paths(self):
        with warnings.catch_warnings():
            warnings.filterwarnings("ignore", message="You have a duplicated operationId in your OpenAPI schema*")
            schema = SchemaGenerator(title="SopnoSetu API").get_schema(public=True)
        return schema.get("paths", {}) if schema else {}

    def _resolve_path(self, schema_path):
        return (
            schema_path.replace("{user_id}", str(self.mentor_user.id))
            .replace("{mentor_id}", str(self.mentor_user.id))
            .replace("{token}", "not-a-real-token")
            .replace("{id}", str(self.mentor_profile.id))
        )

    def _request(self, method, path):
        client_method = getattr(self.client, method.lower())
        if method in {"POST", "PUT", "PATCH"}:
            return client_method(path, {}, format="json")
        return client_method(path, format="json")

    def test_api_surface_covers_every_area(self):
        paths = self._schema_paths()
        operation_count = sum(
            len([method for method in operations.keys() if method in HTTP_METHODS])
            for operations in paths.values()
        )

        self.assertGreaterEqual(len(paths), 35)
        self.assertGreaterEqual(operation_count, 45)
        tags = {tag_for_path(path) for path in paths}
        self.assertEqual(
            tags,
            {"Auth", "Mentors", "Sessions", "Subscriptions", "Chat", "Notifications", "Reviews", "Admin", "General"},
        )

    def test_declared_public_paths_exist_in_schema(self):
        paths = set(self._schema_paths().keys())
        self.assertEqual(PUBLIC_PATHS - paths, set())
        self.assertEqual(set(PUBLIC_METHODS) - paths, set())

    def test_public_get_endpoints_respond_anonymously(self):
        for schema_path in sorted(PUBLIC_GET_PATHS):
            response = self.client.get(self._resolve_path(schema_path))
            self.assertEqual(
                response.status_code,
                200,
                f"Public endpoint {schema_path} returned {response.status_code}",
            )

    def test_all_protected_operations_reject_unauthenticated_requests(self):
        paths = self._schema_paths()
        checked = 0
        for schema_path, operations in sorted(paths.items()):
            for method in sorted(m.upper() for m in operations.keys() if m in HTTP_METHODS):
                if is_public_operation(schema_path, method):
                    continue
                response = self._request(method, self._resolve_path(schema_path))
                self.assertIn(
                    response.status_code,
                    {401, 403},
                    f"Expected unauth rejection for {schema_path} {method}, got {response.status_code}",
                )
                checked += 1
        self.assertGreater(checked, 30)

    def test_protected_operations_do_not_error_for_wrong_role(self):
        self.client.force_authenticate(user=self.mentor_user)
        paths = self._schema_paths()
        for schema_path, operations in sorted(paths.items()):
            if not schema_path.startswith("/api/admin/") and not schema_path.startswith("/api/subscriptions/"):
                continue
            for method in sorted(m.upper() for m in operations.keys() if m in HTTP_METHODS):
                if is_public_operation(schema_path, method):
                    continue
                response = self._request(method, self._resolve_path(schema_path))
                self.assertEqual(
                    response.status_code,
                    403,
                    f"Mentor should be forbidden from {schema_path} {method}, got {response.status_code}",
                )

    def test_schema_view_marks_security_per_operation(self):
        response = self.client.get("/api/schema/")
        self.assertEqual(response.status_code, 200)
        schema = response.data
        self.assertIn("HTTPBearer", schema["components"]["securitySchemes"])

        for schema_path, operations in schema["paths"].items():
            for method, operation in operations.items():
                if method not in HTTP_METHODS:
                    continue
                self.assertEqual(operation["tags"], [tag_for_path(schema_path)])
                if is_public_operation(schema_path, method):
                    self.assertNotIn("security", operation, f"{schema_path} {method}")
                else:
                    self.assertEqual(operation["security"], [{"HTTPBearer": []}], f"{schema_path} {method}")
