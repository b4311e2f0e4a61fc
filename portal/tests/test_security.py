import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from portal.models import ActivityLog, User

pytestmark = pytest.mark.django_db


def login(client, username, password):
    return client.post(reverse('login_view'), {'username': username, 'password': password}, format='json')


def test_login_returns_jwt_pair_and_user(coordinator):
    client = APIClient()
    r = login(client, 'coord1', 'C00rd-Passw0rd')
    assert r.status_code == 200
    assert r.data['token'] and r.data['refresh']
    assert r.data['user'] == {'id': coordinator.id, 'username': 'coord1', 'name': 'Coordinator One',
                              'role': 'coordinator'}
    assert ActivityLog.objects.filter(action='LOGIN', user=coordinator).exists()

    client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.data['token']}")
    assert client.get(reverse('students')).status_code == 200


def test_login_with_wrong_password(coordinator):
    r = login(APIClient(), 'coord1', 'wrong')
    assert r.status_code == 401
    assert r.data['ok'] is False
    assert r.data['error']['code'] == 'not_authenticated'
    assert ActivityLog.objects.filter(action='LOGIN_FAILED').exists()


def test_login_rejects_unexpected_fields(coordinator):
    r = APIClient().post(reverse('login_view'),
                         {'username': 'coord1', 'password': 'C00rd-Passw0rd', 'role': 'admin'}, format='json')
    assert r.status_code == 400
    assert 'role' in r.data['error']['details']


def test_token_rejected_after_role_change(coordinator):
    client = APIClient()
    token = login(client, 'coord1', 'C00rd-Passw0rd').data['token']
    coordinator.role = User.ROLE_ADMIN
    coordinator.save(update_fields=['role'])

    client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
    r = client.get(reverse('students'))
    assert r.status_code == 401


def test_garbage_token_is_rejected(coordinator):
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION='Bearer not-a-token')
    assert client.get(reverse('drives')).status_code == 401


def test_refresh_and_logout(coordinator):
    client = APIClient()
    tokens = login(client, 'coord1', 'C00rd-Passw0rd').data

    r = client.post(reverse('jwt_refresh'), {'refresh': tokens['refresh']}, format='json')
    assert r.status_code == 200
    assert r.data['token']

    client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['token']}")
    r = client.post(reverse('jwt_logout'), {'refresh': tokens['refresh']}, format='json')
    assert r.status_code == 200

    client.credentials()
    r = client.post(reverse('jwt_refresh'), {'refresh': tokens['refresh']}, format='json')
    assert r.status_code == 401


def test_logout_with_invalid_refresh_token(api):
    r = api.post(reverse('jwt_logout'), {'refresh': 'nope'}, format='json')
    assert r.status_code == 400
    assert r.data['error']['code'] == 'validation_error'


def test_register_is_admin_only(coordinator, admin_user):
    payload = {'username': 'coord2', 'password': 'An0ther-Passw0rd', 'name': 'Second Coordinator'}

    client = APIClient()
    client.force_authenticate(user=coordinator)
    r = client.post(reverse('register_view'), payload, format='json')
    assert r.status_code == 403
    assert r.data['error']['code'] == 'permission_denied'

    client.force_authenticate(user=admin_user)
    r = client.post(reverse('register_view'), payload, format='json')
    assert r.status_code == 201
    assert r.data['role'] == 'coordinator'
    assert User.objects.get(username='coord2').check_password('An0ther-Passw0rd')

    r = client.post(reverse('register_view'), payload, format='json')
    assert r.status_code == 400


def test_register_rejects_weak_password(admin_user):
    client = APIClient()
    client.force_authenticate(user=admin_user)
    r = client.post(reverse('register_view'), {'username': 'weak', 'password': '123', 'name': 'Weak'}, format='json')
    assert r.status_code == 400
    assert 'password' in r.data['error']['details']


def test_healthz_is_public():
    r = APIClient().get(reverse('healthz'))
    assert r.status_code == 200
    assert r.json() == {'ok': True, 'db': True}
