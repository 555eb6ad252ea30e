"""
Test suite for the shop module
"""
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from ssuniforms.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from ssuniforms.shop.models import ShopInfo


class ShopInfoTests(TestCase):
    """Test shop information endpoints"""

    def test_defaults_when_no_row(self):
        response = APIClient().get('/api/v1/shop/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['id'], 'default')
        self.assertEqual(response.data['name'], 'SS Uniforms')
        self.assertIn('business_hours', response.data)
        self.assertIn('lat', response.data['location'])

    def test_admin_update_creates_row(self):
        client = AuthenticatedAPIClient()
        client.authenticate_user(TestDataFactory.create_admin())
        response = client.patch('/api/v1/shop/', {'phone': '+91-9999999999', 'images': ['a.jpg']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['notifications'][0]['description'], 'Shop information updated successfully')

        shop = ShopInfo.objects.get()
        self.assertEqual(shop.name, 'SS Uniforms')
        self.assertEqual(shop.phone, '+91-9999999999')
        self.assertEqual(shop.images, ['a.jpg'])

    def test_admin_update_existing_row(self):
        ShopInfo.objects.create(name='Old Name')
        client = AuthenticatedAPIClient()
        client.authenticate_user(TestDataFactory.create_admin())
        client.patch('/api/v1/shop/', {'name': 'New Name'}, format='json')
        self.assertEqual(ShopInfo.objects.get().name, 'New Name')
        self.assertEqual(APIClient().get('/api/v1/shop/').data['name'], 'New Name')

    def test_invalid_email_rejected(self):
        client = AuthenticatedAPIClient()
        client.authenticate_user(TestDataFactory.create_admin())
        response = client.patch('/api/v1/shop/', {'email': 'not-an-email'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_staff_cannot_update(self):
        client = AuthenticatedAPIClient()
        client.authenticate_user(TestDataFactory.create_user())
        response = client.patch('/api/v1/shop/', {'name': 'X'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
