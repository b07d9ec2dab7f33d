from django.db import models
from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.utils.translation import gettext_lazy as _
from django.core.cache import cache
from datetime import date
import secrets
import uuid


# ==============================
# Custom User Manager
# ==============================
class UserManager(BaseUserManager):
    """
    Custom user manager that uses email instead of username for authentication.
    """
    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError(_('Users must have an email address'))
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        return self.create_user(email, password, **extra_fields)


# ==============================
# Custom User Model
# ==============================
class User(AbstractUser):
    """
    Extended User model with UUID and email-based authentication.
    """
    REFERRAL_ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True, max_length=255)
    username = models.CharField(max_length=150, unique=True)
    last_activity = models.DateTimeField(null=True, blank=True)
    is_verified = models.BooleanField(
        default=False,
        help_text=_('Designates whether the user has verified their email address.')
    )
    referral_code = models.CharField(max_length=16, unique=True, null=True, blank=True)
    referred_by = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='referrals'
    )

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    def __str__(self):
        return self.username or self.email

    def ensure_referral_code(self):
        """Generate and persist a referral code the first time it is needed."""
        if not self.referral_code:
            code = ''.join(secrets.choice(self.REFERRAL_ALPHABET) for _ in range(6))
            self.referral_code = code + self.id.hex[-4:].upper()
            self.save(update_fields=['referral_code'])
        return self.referral_code


# ==============================
# Dating enums
# ==============================
class DatingGender(models.TextChoices):
    MAN = 'Man', _('Man')
    WOMAN = 'Woman', _('Woman')
    NON_BINARY = 'Non-binary', _('Non-binary')


class LookingFor(models.TextChoices):
    MEN = 'Men', _('Men')
    WOMEN = 'Women', _('Women')
    EVERYONE = 'Everyone', _('Everyone')


# Which single gender each non-Everyone preference accepts
PREFERENCE_GENDER = {
    LookingFor.MEN.value: DatingGender.MAN.value,
    LookingFor.WOMEN.value: DatingGender.WOMAN.value,
}


def accepts_gender(looking_for, gender):
    """
    True if someone looking for `looking_for` would accept a partner of
    `gender`. Everyone accepts any gender; Men/Women need an exact match.
    """
    if looking_for == LookingFor.EVERYONE:
        return True
    return PREFERENCE_GENDER.get(str(looking_for)) == str(gender)


def preferences_accepting(gender):
    """All preference values that accept the given gender."""
    return [pref for pref in LookingFor.values if accepts_gender(pref, gender)]


# ==============================
# Profile Model
# ==============================
class Profile(models.Model):
    """
    Dating profile information.
    Linked one-to-one with the User model.
    """
    user = models.OneToOneField(
        User, on_delete=models.CASCADE, related_name='profile', primary_key=True
    )
    bio = models.TextField(blank=True, help_text=_('Short biography or description'))
    birth_date = models.DateField(null=True, blank=True, help_text=_('Date of birth'))
    college = models.CharField(max_length=150, blank=True)
    photo_url = models.URLField(blank=True, help_text=_('Primary dating photo'))

    gender = models.CharField(max_length=16, choices=DatingGender.choices, blank=True)
    looking_for = models.CharField(
        max_length=16, choices=LookingFor.choices, blank=True,
        help_text=_('Genders you are looking for')
    )
    interests = models.JSONField(default=list, blank=True)
    intentions = models.JSONField(default=list, blank=True)

    is_complete = models.BooleanField(
        default=False,
        db_index=True,
        help_text=_('Dating profile has everything needed for discovery and blind dating')
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'profiles'
        indexes = [
            models.Index(fields=['is_complete', 'gender'], name='profile_complete_gender_idx'),
        ]

    def __str__(self):
        return f"Profile of {self.user.username}"

    @property
    def age(self):
        """Calculate age from birth_date and cache for performance."""
        if not self.birth_date:
            return None

        cache_key = f"profile_age_{self.user_id}"
        cached_age = cache.get(cache_key)
        if cached_age is not None:
            return cached_age

        today = date.today()
        age = today.year - self.birth_date.year - (
            (today.month, today.day) < (self.birth_date.month, self.birth_date.day)
        )
        cache.set(cache_key, age, 86400)
        return age

    @property
    def has_preferences(self):
        return bool(self.gender and self.looking_for)

    def refresh_completion(self):
        """
        Recompute is_complete: gender, preference, bio and at least one
        interest are required to take part in dating.
        """
        self.is_complete = bool(
            self.has_preferences and self.bio and self.interests
        )
        self.save(update_fields=['is_complete', 'updated_at'])
        return self.is_complete


# ==============================
# Device Tokens (push)
# ==============================
class DeviceToken(models.Model):
    """
    Expo push token registered by one of the user's devices.
    """
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='device_tokens')
    token = models.CharField(max_length=255, unique=True)
    platform = models.CharField(max_length=20, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'device_tokens'

    def __str__(self):
        return f"{self.user.username} ({self.platform or 'device'})"


# ==============================
# Notifications
# ==============================
class Notification(models.Model):
    """
    Stored copy of every notification sent to a user, so the app can show
    a history even when push delivery fails.
    """

    class Category(models.TextChoices):
        LIKE = 'like', _('Like')
        MATCH = 'match', _('Match')
        BLIND = 'blind', _('Blind date')
        CHAT = 'chat', _('Chat')
        EXPIRY = 'expiry', _('Expiry')
        PROMO = 'promo', _('Promo')
        ADMIN = 'admin', _('Admin')

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='notifications')
    title = models.CharField(max_length=255)
    body = models.TextField()
    data = models.JSONField(default=dict, blank=True)
    category = models.CharField(
        max_length=16, choices=Category.choices, default=Category.ADMIN
    )
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'notifications'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', '-created_at'], name='notification_user_idx'),
        ]

    def __str__(self):
        return f"{self.user.username}: {self.title}"
