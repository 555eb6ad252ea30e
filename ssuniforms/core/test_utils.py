"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from ssuniforms.core.models import Profile
from ssuniforms.catalog.models import Catalogue, Item, ItemSize
from ssuniforms.pos.models import Sale
from decimal import Decimal
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(email=None, password='testpass123', name=None, role=Profile.ROLE_STAFF):
        """Create a test user with a profile in the given role"""
        if not email:
            email = f'testuser_{TestDataFactory.random_string(6).lower()}@test.com'
        user = User.objects.create_user(email=email, password=password)
        Profile.objects.filter(user=user).update(name=name or email.split('@')[0], role=role)
        user.refresh_from_db()
        return user

    @staticmethod
    def create_admin(email=None, password='testpass123', name=None):
        """Create a test user with the admin role"""
        return TestDataFactory.create_user(email=email, password=password, name=name, role=Profile.ROLE_ADMIN)

    @staticmethod
    def create_catalogue(name=None, order=0):
        """Create a test catalogue"""
        if not name:
            name = f'School_{TestDataFactory.random_string(6)}'
        return Catalogue.objects.create(
            name=name,
            description=f'Uniforms for {name}',
            image='',
            order=order,
        )

    @staticmethod
    def create_item(catalogue=None, name=None, stock=10, price=Decimal('100.00'),
                    section_type=Item.SECTION_SUMMER, location='Rack A'):
        """Create a test item"""
        if not catalogue:
            catalogue = TestDataFactory.create_catalogue()
        if not name:
            name = f'Shirt_{TestDataFactory.random_string(6)}'
        return Item.objects.create(
            catalogue=catalogue,
            name=name,
            material='Cotton',
            location=location,
            stock=stock,
            price=price,
            image='',
            section_type=section_type,
        )

    @staticmethod
    def create_item_size(item, size='M', price=Decimal('120.00'), stock=None):
        """Create a test size variant"""
        return ItemSize.objects.create(item=item, size=size, price=price, stock=stock)

    @staticmethod
    def create_sale(employee, items=None, customer_name='Test Customer', customer_phone=''):
        """Create a test sale from snapshot lines"""
        items = items or []
        total = sum((Decimal(str(line['price'])) * line['quantity'] for line in items), Decimal('0'))
        return Sale.objects.create(
            employee=employee,
            customer_name=customer_name,
            customer_phone=customer_phone or None,
            total_amount=total,
            items=items,
        )


class AuthenticatedAPIClient(APIClient):
    """API client with authentication helpers"""

    def authenticate_user(self, user):
        """Authenticate a user and set the JWT token"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return refresh
