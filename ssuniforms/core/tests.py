"""
Test suite for the core module
Tests: role policy, route guard, formatters, notifications, auth, employees,
privileged account functions
"""
from datetime import datetime, date
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase, SimpleTestCase
from rest_framework import status
from rest_framework.test import APIClient

from ssuniforms.core.accounts import create_account, delete_account, AccountError
from ssuniforms.core.formatters import (
    format_price, format_number, format_date, format_date_only, format_phone_number,
    title_case, truncate_text, get_initials, calculate_percentage, get_stock_status,
    format_file_size,
)
from ssuniforms.core.guard import RouteGuard, GuardState, check_route_access, guard_for_route
from ssuniforms.core.models import Profile
from ssuniforms.core.notifications import Notifier, DESTRUCTIVE
from ssuniforms.core.permissions import has_admin_permissions, has_staff_permissions
from ssuniforms.core.serializers import ProfileUpdateSerializer
from ssuniforms.core.test_utils import TestDataFactory, AuthenticatedAPIClient

User = get_user_model()


class RolePolicyTests(SimpleTestCase):
    """Test the admin / staff predicates"""

    def test_admin_profile(self):
        profile = {'role': 'admin'}
        self.assertTrue(has_admin_permissions(profile))
        self.assertTrue(has_staff_permissions(profile))

    def test_staff_profile(self):
        profile = {'role': 'staff'}
        self.assertFalse(has_admin_permissions(profile))
        self.assertTrue(has_staff_permissions(profile))

    def test_missing_profile_has_no_permissions(self):
        self.assertFalse(has_admin_permissions(None))
        self.assertFalse(has_staff_permissions(None))

    def test_unknown_role_has_no_permissions(self):
        self.assertFalse(has_staff_permissions({'role': 'customer'}))
        self.assertFalse(has_staff_permissions({}))

    def test_admin_implies_staff(self):
        for profile in [None, {}, {'role': 'admin'}, {'role': 'staff'}, {'role': 'other'}]:
            if has_admin_permissions(profile):
                self.assertTrue(has_staff_permissions(profile))

    def test_model_instances_are_accepted(self):
        self.assertTrue(has_admin_permissions(Profile(role=Profile.ROLE_ADMIN)))
        self.assertFalse(has_admin_permissions(Profile(role=Profile.ROLE_STAFF)))


class RouteGuardTests(TestCase):
    """Test guard state transitions and route resolution"""

    def setUp(self):
        self.staff = TestDataFactory.create_user()
        self.admin = TestDataFactory.create_admin()

    def test_guard_starts_loading_and_renders_nothing(self):
        guard = RouteGuard(required_role='admin')
        self.assertEqual(guard.state, GuardState.LOADING)
        self.assertFalse(guard.should_render)
        self.assertIsNone(guard.redirect_to)

    def test_unauthenticated_redirects_to_login(self):
        guard = RouteGuard(required_role='admin')
        self.assertEqual(guard.resolve(None, None), GuardState.UNAUTHENTICATED)
        self.assertEqual(guard.redirect_to, '/login')
        self.assertFalse(guard.should_render)

    def test_missing_profile_redirects_to_login(self):
        guard = RouteGuard()
        self.assertEqual(guard.resolve(self.staff, None), GuardState.AUTHENTICATED_NO_PROFILE)
        self.assertEqual(guard.redirect_to, '/login')

    def test_staff_on_admin_route_is_forbidden(self):
        guard = RouteGuard(required_role='admin')
        self.assertEqual(guard.resolve(self.staff, self.staff.profile), GuardState.FORBIDDEN)
        self.assertEqual(guard.redirect_to, '/')
        self.assertFalse(guard.should_render)

    def test_admin_on_admin_route_is_authorized(self):
        guard = RouteGuard(required_role='admin')
        self.assertEqual(guard.resolve(self.admin, self.admin.profile), GuardState.AUTHORIZED)
        self.assertTrue(guard.should_render)
        self.assertIsNone(guard.redirect_to)

    def test_any_profile_satisfies_no_role_requirement(self):
        guard = RouteGuard()
        self.assertEqual(guard.resolve(self.staff, self.staff.profile), GuardState.AUTHORIZED)

    def test_every_admin_subroute_requires_admin(self):
        for path in ['/admin', '/admin/catalogues', '/admin/items', '/admin/employees',
                     '/admin/sales', '/admin/low-stock']:
            self.assertEqual(guard_for_route(path).required_role, 'admin')

    def test_unknown_route_is_not_found(self):
        result = check_route_access('/does-not-exist', None, None)
        self.assertTrue(result['not_found'])

    def test_public_route_renders_for_anonymous(self):
        result = check_route_access('/catalogues/', None, None)
        self.assertEqual(result['path'], '/catalogues')
        self.assertTrue(result['render'])
        self.assertIsNone(result['redirect'])

    def test_route_access_endpoint_redirects_staff_from_admin(self):
        client = AuthenticatedAPIClient()
        client.authenticate_user(self.staff)
        response = client.get('/api/v1/auth/route-access/', {'path': '/admin/sales'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['state'], 'forbidden')
        self.assertEqual(response.data['redirect'], '/')
        self.assertFalse(response.data['render'])

    def test_route_access_endpoint_anonymous(self):
        response = APIClient().get('/api/v1/auth/route-access/', {'path': '/admin'})
        self.assertEqual(response.data['state'], 'unauthenticated')
        self.assertEqual(response.data['redirect'], '/login')


class FormatterTests(SimpleTestCase):
    """Test display formatting helpers"""

    def test_format_price_indian_grouping(self):
        self.assertEqual(format_price(123456), '₹1,23,456')
        self.assertEqual(format_price(1234567.5), '₹12,34,567.5')
        self.assertEqual(format_price(100), '₹100')
        self.assertEqual(format_price(Decimal('99.50')), '₹99.5')

    def test_format_price_negative(self):
        self.assertEqual(format_price(-1500), '-₹1,500')

    def test_format_number(self):
        self.assertEqual(format_number(10000000), '1,00,00,000')
        self.assertEqual(format_number(999), '999')

    def test_format_date(self):
        self.assertEqual(format_date(datetime(2025, 1, 12, 15, 15)), '12 Jan 2025, 03:15 pm')
        self.assertEqual(format_date_only(date(2025, 1, 12)), '12 Jan 2025')
        self.assertEqual(format_date_only('2025-01-12'), '12 Jan 2025')

    def test_format_phone_number(self):
        self.assertEqual(format_phone_number('9876543210'), '+91 98765 43210')
        self.assertEqual(format_phone_number('98765-43210'), '+91 98765 43210')
        self.assertEqual(format_phone_number('12345'), '12345')

    def test_text_helpers(self):
        self.assertEqual(title_case('school SHIRT'), 'School Shirt')
        self.assertEqual(truncate_text('Uniform', 3), 'Uni...')
        self.assertEqual(truncate_text('Tie', 10), 'Tie')
        self.assertEqual(get_initials('Ravi Kumar Sharma'), 'RK')

    def test_calculate_percentage(self):
        self.assertEqual(calculate_percentage(1, 3), 33)
        self.assertEqual(calculate_percentage(5, 0), 0)

    def test_get_stock_status(self):
        self.assertEqual(get_stock_status(0)['status'], 'out')
        self.assertEqual(get_stock_status(5)['status'], 'low')
        self.assertEqual(get_stock_status(6)['status'], 'medium')
        self.assertEqual(get_stock_status(20)['status'], 'high')

    def test_format_file_size(self):
        self.assertEqual(format_file_size(0), '0 Bytes')
        self.assertEqual(format_file_size(1536), '1.5 KB')


class NotifierTests(SimpleTestCase):

    def test_collect_and_drain(self):
        notifier = Notifier()
        notifier.success('Success', 'Saved')
        notifier.error('Error', 'Failed')
        self.assertTrue(notifier.has_errors)
        drained = notifier.drain()
        self.assertEqual(len(drained), 2)
        self.assertEqual(drained[1]['variant'], DESTRUCTIVE)
        self.assertEqual(notifier.notifications, [])


class AccountTests(TestCase):
    """Test account creation / deletion"""

    def test_new_user_gets_staff_profile(self):
        user = User.objects.create_user(email='new@test.com', password='secret1')
        self.assertEqual(user.profile.role, Profile.ROLE_STAFF)
        self.assertEqual(user.profile.name, 'new')

    def test_create_account_sets_role(self):
        user = create_account('boss@test.com', 'secret1', 'Boss', role='admin')
        self.assertEqual(Profile.objects.get(user=user).role, 'admin')
        self.assertEqual(Profile.objects.get(user=user).name, 'Boss')

    def test_create_account_rejects_invalid_input(self):
        with self.assertRaises(AccountError):
            create_account('not-an-email', 'secret1', 'X')
        with self.assertRaises(AccountError):
            create_account('short@test.com', '123', 'X')
        with self.assertRaises(AccountError):
            create_account('role@test.com', 'secret1', 'X', role='owner')
        self.assertFalse(User.objects.filter(email__in=['short@test.com', 'role@test.com']).exists())

    def test_create_account_rejects_duplicate_email(self):
        create_account('dup@test.com', 'secret1', 'One')
        with self.assertRaises(AccountError):
            create_account('dup@test.com', 'secret1', 'Two')

    def test_delete_account(self):
        admin = TestDataFactory.create_admin()
        staff = TestDataFactory.create_user()
        delete_account(staff.pk, acting_user=admin)
        self.assertFalse(User.objects.filter(pk=staff.pk).exists())
        self.assertFalse(Profile.objects.filter(user_id=staff.pk).exists())

    def test_cannot_delete_own_account(self):
        admin = TestDataFactory.create_admin()
        with self.assertRaisesMessage(AccountError, 'Cannot delete your own account'):
            delete_account(admin.pk, acting_user=admin)


class AuthTests(TestCase):
    """Test login, signup, me and logout endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(email='staff@test.com', password='testpass123', name='Staff One')

    def test_login(self):
        response = self.client.post('/api/v1/auth/login/', {
            'email': 'staff@test.com',
            'password': 'testpass123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['profile']['role'], 'staff')

    def test_login_wrong_password(self):
        response = self.client.post('/api/v1/auth/login/', {
            'email': 'staff@test.com',
            'password': 'wrong-password',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_signup_creates_staff_account(self):
        response = self.client.post('/api/v1/auth/signup/', {
            'name': 'New Person',
            'email': 'person@test.com',
            'password': 'secret1',
            'password_confirm': 'secret1',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['profile']['role'], 'staff')
        self.assertEqual(response.data['profile']['name'], 'New Person')

    def test_signup_validation_writes_nothing(self):
        cases = [
            {'name': 'A', 'email': 'bad-email', 'password': 'secret1', 'password_confirm': 'secret1'},
            {'name': 'A', 'email': 'a@test.com', 'password': '123', 'password_confirm': '123'},
            {'name': 'A', 'email': 'a@test.com', 'password': 'secret1', 'password_confirm': 'secret2'},
            {'email': 'a@test.com', 'password': 'secret1', 'password_confirm': 'secret1'},
        ]
        for payload in cases:
            response = self.client.post('/api/v1/auth/signup/', payload, format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(User.objects.filter(email='a@test.com').exists())

    def test_me(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['profile']['name'], 'Staff One')
        self.assertFalse(response.data['is_admin'])
        self.assertTrue(response.data['is_staff_member'])

    def test_me_without_profile(self):
        Profile.objects.filter(user=self.user).delete()
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Profile Setup Required')

    def test_logout_blacklists_refresh_token(self):
        refresh = self.client.authenticate_user(self.user)
        response = self.client.post('/api/v1/auth/logout/', {'refresh': str(refresh)}, format='json')
        self.assertEqual(response.status_code, status.HTTP_205_RESET_CONTENT)

        response = self.client.post('/api/v1/auth/refresh/', {'refresh': str(refresh)}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class EmployeeTests(TestCase):
    """Test employee management endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin(name='Admin')
        self.staff = TestDataFactory.create_user(name='Staff')
        self.client = AuthenticatedAPIClient()

    def test_list_employees_as_admin(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/employees/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['employees']), 2)
        self.assertEqual(response.data['admin_count'], 1)
        self.assertEqual(response.data['staff_count'], 1)

    def test_list_employees_as_staff_is_forbidden(self):
        self.client.authenticate_user(self.staff)
        response = self.client.get('/api/v1/employees/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_promote_employee(self):
        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/v1/employees/{self.staff.pk}/', {'role': 'admin'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.staff.profile.refresh_from_db()
        self.assertEqual(self.staff.profile.role, 'admin')

    def test_invalid_role_is_rejected(self):
        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/v1/employees/{self.staff.pk}/', {'role': 'owner'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_admin_cannot_change_own_role(self):
        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/v1/employees/{self.admin.pk}/', {'role': 'staff'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Cannot change your own role')
        self.admin.profile.refresh_from_db()
        self.assertEqual(self.admin.profile.role, 'admin')

        # Bootstrap stays closed while an admin exists
        response = APIClient().post('/functions/v1/create-admin', {
            'email': 'intruder@test.com', 'password': 'secret1', 'name': 'Intruder',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Admin account already exists')

    def test_admin_can_rename_self(self):
        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/v1/employees/{self.admin.pk}/', {'name': 'Boss', 'role': 'admin'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'Boss')

    def test_last_admin_cannot_be_demoted(self):
        serializer = ProfileUpdateSerializer(self.admin.profile, data={'role': 'staff'}, partial=True)
        self.assertFalse(serializer.is_valid())
        self.assertIn('role', serializer.errors)

    def test_demote_admin_when_another_remains(self):
        other = TestDataFactory.create_admin(name='Other Admin')
        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/v1/employees/{other.pk}/', {'role': 'staff'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        other.profile.refresh_from_db()
        self.assertEqual(other.profile.role, 'staff')


class AccountFunctionTests(TestCase):
    """Test the create-admin / create-user / delete-user functions"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_preflight(self):
        response = self.client.options('/functions/v1/create-user')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(response['Access-Control-Allow-Origin'], '*')
        self.assertIn('authorization', response['Access-Control-Allow-Headers'])

    def test_create_admin(self):
        response = self.client.post('/functions/v1/create-admin', {
            'email': 'owner@test.com', 'password': 'secret1', 'name': 'Owner',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertEqual(Profile.objects.get(user_id=response.data['user_id']).role, 'admin')
        self.assertEqual(response['Access-Control-Allow-Origin'], '*')

    def test_create_admin_missing_fields(self):
        response = self.client.post('/functions/v1/create-admin', {'email': 'owner@test.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Email, password, and name are required')

    def test_create_admin_rejects_non_string_fields(self):
        for body in (
            {'email': 123, 'password': 'secret12', 'name': 'X'},
            {'email': ['a@test.com'], 'password': 'secret12', 'name': 'X'},
            {'email': 'a@test.com', 'password': 123456, 'name': 'X'},
            {'email': 'a@test.com', 'password': 'secret12', 'name': {'first': 'X'}},
        ):
            response = self.client.post('/functions/v1/create-admin', body, format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertEqual(response.data['error'], 'Email, password, and name are required')
        self.assertFalse(Profile.objects.filter(role='admin').exists())

    def test_create_user_rejects_non_string_email(self):
        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.post('/functions/v1/create-user', {
            'email': 123, 'password': 'secret12', 'name': 'X',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Email, password, and name are required')

    def test_create_admin_refused_when_admin_exists(self):
        TestDataFactory.create_admin()
        response = self.client.post('/functions/v1/create-admin', {
            'email': 'owner@test.com', 'password': 'secret1', 'name': 'Owner',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Admin account already exists')

    def test_create_user_requires_authorization_header(self):
        response = self.client.post('/functions/v1/create-user', {
            'email': 'x@test.com', 'password': 'secret1', 'name': 'X',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'No authorization header')

    def test_create_user_rejects_invalid_token(self):
        self.client.credentials(HTTP_AUTHORIZATION='Bearer not-a-token')
        response = self.client.post('/functions/v1/create-user', {
            'email': 'x@test.com', 'password': 'secret1', 'name': 'X',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'Unauthorized')

    def test_create_user_requires_admin_caller(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.post('/functions/v1/create-user', {
            'email': 'x@test.com', 'password': 'secret1', 'name': 'X',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Admin access required')

    def test_create_user_defaults_to_staff(self):
        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.post('/functions/v1/create-user', {
            'email': 'x@test.com', 'password': 'secret1', 'name': 'X',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Profile.objects.get(user_id=response.data['user_id']).role, 'staff')

    def test_create_user_invalid_role(self):
        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.post('/functions/v1/create-user', {
            'email': 'x@test.com', 'password': 'secret1', 'name': 'X', 'role': 'owner',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], "Invalid role. Must be 'admin' or 'staff'")
        self.assertFalse(User.objects.filter(email='x@test.com').exists())

    def test_delete_user(self):
        admin = TestDataFactory.create_admin()
        staff = TestDataFactory.create_user()
        self.client.authenticate_user(admin)
        response = self.client.post('/functions/v1/delete-user', {'userId': staff.pk}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertFalse(User.objects.filter(pk=staff.pk).exists())

    def test_delete_user_requires_user_id(self):
        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.post('/functions/v1/delete-user', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'User ID is required')

    def test_delete_own_account_is_rejected(self):
        admin = TestDataFactory.create_admin()
        self.client.authenticate_user(admin)
        response = self.client.post('/functions/v1/delete-user', {'userId': admin.pk}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Cannot delete your own account')
        self.assertTrue(User.objects.filter(pk=admin.pk).exists())
