from django.core.management.base import BaseCommand
from django.contrib.auth import get_user_model
from django.db import transaction
from apps.users.models import Profile, DatingGender, LookingFor
from faker import Faker
import random

User = get_user_model()
fake = Faker()

INTERESTS = [
    'Music', 'Travel', 'Football', 'Cooking', 'Reading', 'Movies', 'Gaming',
    'Photography', 'Dancing', 'Fitness', 'Art', 'Fashion', 'Tech', 'Hiking',
]

INTENTIONS = [
    'Something serious', 'Casual dating', 'New friends', 'Study buddy', 'Not sure yet',
]


class Command(BaseCommand):
    help = 'Create fake users with complete dating profiles for testing'

    def add_arguments(self, parser):
        parser.add_argument(
            '--count',
            type=int,
            default=20,
            help='Number of fake daters to create'
        )
        parser.add_argument(
            '--seed',
            type=int,
            default=None,
            help='Seed Faker and random for reproducible data'
        )

    def handle(self, *args, **options):
        count = options['count']

        if options['seed'] is not None:
            Faker.seed(options['seed'])
            random.seed(options['seed'])

        self.stdout.write(f'Creating {count} fake daters...')

        created = 0
        for _ in range(count):
            username = fake.user_name() + str(random.randint(1000, 9999))
            if User.objects.filter(username=username).exists():
                self.stdout.write(self.style.WARNING(f'✗ Skipped existing username: {username}'))
                continue

            with transaction.atomic():
                user = User.objects.create_user(
                    email=f"{username}@example.com",
                    username=username,
                    password='testpassword123',
                    first_name=fake.first_name()
                )

                # The post_save signal has already created an empty profile
                profile, _ = Profile.objects.get_or_create(user=user)
                profile.bio = fake.text(max_nb_chars=200)
                profile.birth_date = fake.date_of_birth(minimum_age=18, maximum_age=35)
                profile.college = f'{fake.city()} University'
                profile.gender = random.choice(DatingGender.values)
                profile.looking_for = random.choice(LookingFor.values)
                profile.interests = random.sample(INTERESTS, k=random.randint(3, 6))
                profile.intentions = random.sample(INTENTIONS, k=random.randint(1, 2))
                profile.save()
                profile.refresh_completion()

            created += 1
            self.stdout.write(self.style.SUCCESS(f'✓ Created: {username}'))

        self.stdout.write(self.style.SUCCESS(f'\n✅ Successfully created {created} fake daters'))
