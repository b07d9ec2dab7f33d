"""
User & Profile Serializers
===========================
Read serializers for the different levels of profile exposure (blurred,
brief, revealed) and a write serializer for dating profile updates.
"""

from rest_framework import serializers
from datetime import date

from .models import User, Profile, DeviceToken, Notification


MAX_TAGS = 20


# ============================================================================
# PROFILE SERIALIZERS
# ============================================================================

class ProfileSerializer(serializers.ModelSerializer):
    """
    Read serializer for the authenticated user's own profile.
    """
    age = serializers.IntegerField(read_only=True)

    class Meta:
        model = Profile
        fields = [
            'bio', 'birth_date', 'age', 'college', 'photo_url',
            'gender', 'looking_for', 'interests', 'intentions',
            'is_complete', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class ProfileUpdateSerializer(serializers.ModelSerializer):
    """
    Write serializer for updating the dating profile.
    Design Pattern: Separate write serializer for updates.
    """
    interests = serializers.ListField(
        child=serializers.CharField(max_length=50), required=False, max_length=MAX_TAGS
    )
    intentions = serializers.ListField(
        child=serializers.CharField(max_length=50), required=False, max_length=MAX_TAGS
    )

    class Meta:
        model = Profile
        fields = [
            'bio', 'birth_date', 'college', 'photo_url',
            'gender', 'looking_for', 'interests', 'intentions'
        ]

    def validate_birth_date(self, value):
        """
        Ensure user is at least 18 years old.
        """
        if value:
            today = date.today()
            age = today.year - value.year - (
                (today.month, today.day) < (value.month, value.day)
            )
            if age < 18:
                raise serializers.ValidationError(
                    'You must be at least 18 years old to use this app.'
                )
        return value

    def _clean_tags(self, values):
        # Keep order, drop blanks and case-insensitive duplicates
        seen = set()
        cleaned = []
        for value in values:
            tag = value.strip()
            if tag and tag.lower() not in seen:
                seen.add(tag.lower())
                cleaned.append(tag)
        return cleaned

    def validate_interests(self, value):
        return self._clean_tags(value)

    def validate_intentions(self, value):
        return self._clean_tags(value)

    def update(self, instance, validated_data):
        """
        Update profile and recalculate completeness.
        """
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save()
        instance.refresh_completion()
        return instance


# ============================================================================
# USER SERIALIZERS
# ============================================================================

class UserBriefSerializer(serializers.ModelSerializer):
    """
    Lightweight user serializer for lists.
    """
    photo_url = serializers.CharField(source='profile.photo_url', read_only=True)
    age = serializers.IntegerField(source='profile.age', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'username', 'photo_url', 'age']


class RevealedProfileSerializer(serializers.ModelSerializer):
    """
    Everything a user sees once a profile is revealed to them.
    """
    bio = serializers.CharField(source='profile.bio', read_only=True)
    age = serializers.IntegerField(source='profile.age', read_only=True)
    college = serializers.CharField(source='profile.college', read_only=True)
    photo_url = serializers.CharField(source='profile.photo_url', read_only=True)
    gender = serializers.CharField(source='profile.gender', read_only=True)
    interests = serializers.ListField(source='profile.interests', read_only=True)
    intentions = serializers.ListField(source='profile.intentions', read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'username', 'first_name', 'bio', 'age', 'college',
            'photo_url', 'gender', 'interests', 'intentions'
        ]


class BlurredProfileSerializer(serializers.ModelSerializer):
    """
    Minimal teaser shown for likes that have not been revealed yet.
    """
    gender = serializers.CharField(source='profile.gender', read_only=True)
    interests = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'gender', 'interests']

    def get_interests(self, obj):
        return list(obj.profile.interests or [])[:3]


class DeviceTokenSerializer(serializers.ModelSerializer):
    class Meta:
        model = DeviceToken
        fields = ['token', 'platform', 'is_active', 'created_at']
        read_only_fields = ['is_active', 'created_at']
        extra_kwargs = {'token': {'validators': []}}

    def validate_token(self, value):
        if not value.startswith('ExponentPushToken'):
            raise serializers.ValidationError('Invalid Expo push token.')
        return value


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = ['id', 'title', 'body', 'data', 'category', 'is_read', 'created_at']
        read_only_fields = fields
