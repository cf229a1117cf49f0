"""
Tests for bearer token handling on protected routes.
"""
from datetime import timedelta

import pytest

from patient_portal.core.permissions import ActorRole, Identity
from patient_portal.core.security import TokenService


def test_missing_token_is_401(client, patient):
    response = client.get(f"/patients/{patient.id}")

    assert response.status_code == 401
    assert response.json() == {"error": "Authentication required"}
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_garbage_token_is_401(client, patient):
    response = client.get(f"/patients/{patient.id}", headers={"Authorization": "Bearer not.a.token"})
    assert response.status_code == 401


def test_expired_token_is_401(client, patient, provider, token_service):
    identity = Identity(id=provider.id, email=provider.email, role=ActorRole.PROVIDER)
    token = token_service.issue(identity, expires_delta=timedelta(minutes=-5))

    response = client.get(f"/patients/{patient.id}", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_token_signed_with_other_secret_is_401(client, patient, provider):
    identity = Identity(id=provider.id, email=provider.email, role=ActorRole.PROVIDER)
    token = TokenService(secret_key="attacker-secret").issue(identity)

    response = client.get(f"/patients/{patient.id}", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


@pytest.mark.parametrize(
    "method, path, role_headers, message",
    [
        ("get", "/patients/search", "patient_headers", "Access denied. Provider role required."),
        ("get", "/patients/search", "staff_headers", "Access denied. Provider role required."),
        ("get", "/bills", "provider_headers", "Access denied. Patient role required."),
        ("get", "/bills", "staff_headers", "Access denied. Patient role required."),
        ("get", "/reports/inactive-accounts", "provider_headers", "Access denied. Staff role required."),
        ("get", "/staff/patients/search", "patient_headers", "Access denied. Staff role required."),
        ("post", "/staff/bills/mark-overdue", "provider_headers", "Access denied. Staff role required."),
    ],
)
def test_wrong_role_is_403(client, request, method, path, role_headers, message):
    headers = request.getfixturevalue(role_headers)

    response = getattr(client, method)(path, headers=headers)

    assert response.status_code == 403
    assert response.json() == {"error": message}
