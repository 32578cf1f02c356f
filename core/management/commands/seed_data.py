from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from core.models import MentorAvailabilitySlot, MentorProfile, PlatformSettings, Review, UserProfile


MENTORS = [
    {
        "name": "Arafat Rahman",
        "email": "arafat@sopnosetu.local",
        "university": "Dhaka University",
        "department": "Computer Science",
        "bio": "Senior year CSE student. Expert in Math and Physics admission tests.",
        "expertise": ["Math", "Physics"],
        "hourly_rate": Decimal("500.00"),
        "verified": True,
        "slots": [("Friday", "10:00", "12:00"), ("Saturday", "16:00", "18:00")],
    },
    {
        "name": "Sadia Islam",
        "email": "sadia@sopnosetu.local",
        "university": "Dhaka Medical College",
        "department": "MBBS",
        "bio": "Medical admission specialist. Biology expert.",
        "expertise": ["Biology", "Chemistry"],
        "hourly_rate": Decimal("600.00"),
        "verified": True,
        "slots": [("Sunday", "18:00", "20:00")],
    },
    {
        "name": "Rahim Uddin",
        "email": "rahim@sopnosetu.local",
        "university": "BUET",
        "department": "EEE",
        "bio": "Engineering passion.",
        "expertise": ["Physics"],
        "hourly_rate": Decimal("550.00"),
        "verified": False,
        "slots": [],
    },
]


class Command(BaseCommand):
    help = "Seed an admin, sample mentors with availability, and a candidate."

    def add_arguments(self, parser):
        parser.add_argument(
            "--password",
            default="123456",
            help="Password assigned to every seeded account (default: 123456).",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        password = options["password"]
        User = get_user_model()

        test_domain = "sopnosetu.local"
        User.objects.filter(email__endswith=f"@{test_domain}").delete()

        def create_account(name, email, role, **profile_fields):
            first_name, _, last_name = name.partition(" ")
            user = User.objects.create_user(
                username=email,
                email=email,
                password=password,
                first_name=first_name,
                last_name=last_name,
            )
            UserProfile.objects.create(user=user, name=name, role=role, verified=True, **profile_fields)
            return user

        create_account("Admin User", f"admin@{test_domain}", "admin")

        mentor_users = []
        for entry in MENTORS:
            user = create_account(
                entry["name"],
                entry["email"],
                "mentor",
                is_mentor_verified=entry["verified"],
                university=entry["university"],
                department=entry["department"],
                title="Mentor",
            )
            mentor_profile = MentorProfile.objects.create(
                user=user,
                university=entry["university"],
                department=entry["department"],
                bio=entry["bio"],
                expertise=entry["expertise"],
                hourly_rate=entry["hourly_rate"],
            )
            MentorAvailabilitySlot.objects.bulk_create(
                [
                    MentorAvailabilitySlot(
                        mentor_profile=mentor_profile,
                        day=day,
                        start_time=start,
                        end_time=end,
                    )
                    for day, start, end in entry["slots"]
                ]
            )
            mentor_users.append(user)

        candidate = create_account("Karim Ahmed", f"karim@{test_domain}", "candidate")

        top_mentor = mentor_users[0]
        Review.objects.create(
            mentor=top_mentor,
            candidate=candidate,
            rating=5,
            comment="Arafat is an amazing mentor! His math tricks are legendary.",
        )
        MentorProfile.objects.filter(user=top_mentor).update(rating=Decimal("5.0"), reviews_count=1)

        PlatformSettings.load().save()

        self.stdout.write(
            self.style.SUCCESS(
                f"Seed data created: 1 admin, {len(mentor_users)} mentors, 1 candidate."
            )
        )
