from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User, Profile


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'email', 'first_name', 'last_name', 'phone', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class ProfileSerializer(serializers.ModelSerializer):
    id = serializers.IntegerField(source='user_id', read_only=True)
    email = serializers.EmailField(source='user.email', read_only=True)

    class Meta:
        model = Profile
        fields = ['id', 'name', 'email', 'role', 'created_at']
        read_only_fields = ['created_at']


class ProfileUpdateSerializer(serializers.ModelSerializer):
    """Admin edit of an employee - name and role only"""

    class Meta:
        model = Profile
        fields = ['name', 'role']

    def validate_role(self, value):
        # At least one admin must remain, otherwise create-admin reopens
        profile = self.instance
        if profile is not None and profile.role == Profile.ROLE_ADMIN and value != Profile.ROLE_ADMIN:
            other_admins = Profile.objects.filter(role=Profile.ROLE_ADMIN).exclude(pk=profile.pk)
            if not other_admins.exists():
                raise serializers.ValidationError('Cannot demote the last admin')
        return value


class SignupSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True)

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError('A user with this email address already exists.')
        return value

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({"password": "Passwords don't match"})
        return attrs
