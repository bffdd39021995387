import pytest

from medpractice.core.exceptions import Conflict, Unauthorized, ValidationError
from medpractice.core.security import verify_token
from medpractice.services.auth_service import AuthService
from medpractice.services.patient_service import PatientService

# Test data
test_user_data = {
    "email": "test@example.com",
    "password": "TestPassword123",
    "name": "Test User",
    "role": "patient"
}

test_login_data = {
    "email": "test@example.com",
    "password": "TestPassword123"
}

class TestAuthentication:

    def test_signup_user(self, client):
        """Test user registration."""
        response = client.post("/api/auth/signup", json=test_user_data)
        assert response.status_code == 201

        data = response.json()
        assert data["email"] == test_user_data["email"]
        assert data["role"] == test_user_data["role"]
        assert data["full_name"] == "Test User"
        assert "password" not in data
        assert "password_hash" not in data

    def test_signup_default_name(self, client):
        """Test that the display name falls back to the email's local part."""
        signup_data = test_user_data.copy()
        del signup_data["name"]

        response = client.post("/api/auth/signup", json=signup_data)
        assert response.status_code == 201
        assert response.json()["full_name"] == "test"

    def test_signup_invalid_role(self, client, count_rows):
        """Test registration with a role outside doctor/patient."""
        invalid_data = test_user_data.copy()
        invalid_data["role"] = "admin"

        response = client.post("/api/auth/signup", json=invalid_data)
        assert response.status_code == 400
        assert "Invalid role" in response.json()["message"]
        assert count_rows("users") == 0

    def test_signup_duplicate_email(self, client, count_rows):
        """Test registration with duplicate email."""
        client.post("/api/auth/signup", json=test_user_data)

        response = client.post("/api/auth/signup", json=test_user_data)
        assert response.status_code == 400
        assert "already exists" in response.json()["message"]
        assert count_rows("users") == 1

    def test_signup_invalid_email(self, client):
        """Test registration with a malformed email."""
        invalid_data = test_user_data.copy()
        invalid_data["email"] = "not-an-email"

        response = client.post("/api/auth/signup", json=invalid_data)
        assert response.status_code == 400
        assert "message" in response.json()

    def test_signup_short_password(self, client):
        """Test that a short password is accepted as given."""
        signup_data = test_user_data.copy()
        signup_data["password"] = "weak"

        response = client.post("/api/auth/signup", json=signup_data)
        assert response.status_code == 201

        response = client.post("/api/auth/login", json={
            "email": test_user_data["email"],
            "password": "weak"
        })
        assert response.status_code == 200

    def test_signup_empty_password(self, client, count_rows):
        """Test registration without a password."""
        invalid_data = test_user_data.copy()
        invalid_data["password"] = ""

        response = client.post("/api/auth/signup", json=invalid_data)
        assert response.status_code == 400
        assert count_rows("users") == 0

    def test_login_with_email_as_typed(self, client):
        """Test that a mixed-case email is stored and matched exactly as typed."""
        signup_data = test_user_data.copy()
        signup_data["email"] = "Doc@Example.COM"

        response = client.post("/api/auth/signup", json=signup_data)
        assert response.status_code == 201
        assert response.json()["email"] == "Doc@Example.COM"

        response = client.post("/api/auth/login", json={
            "email": "Doc@Example.COM",
            "password": test_user_data["password"]
        })
        assert response.status_code == 200
        assert response.json()["user"]["email"] == "Doc@Example.COM"

    def test_login_success(self, client):
        """Test successful login."""
        client.post("/api/auth/signup", json=test_user_data)

        response = client.post("/api/auth/login", json=test_login_data)
        assert response.status_code == 200

        data = response.json()
        assert "access_token" in data
        assert data["token_type"] == "bearer"
        assert data["expires_in"] > 0
        assert data["user"]["email"] == test_user_data["email"]
        assert "password" not in data["user"]
        assert "password_hash" not in data["user"]

        payload = verify_token(data["access_token"])
        assert payload.sub == data["user"]["id"]
        assert payload.role.value == "patient"

    def test_login_unknown_email(self, client):
        """Test login with an email that was never registered."""
        response = client.post("/api/auth/login", json={
            "email": "nonexistent@example.com",
            "password": "wrongpassword"
        })
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized", "message": "Invalid credentials"}

    def test_login_wrong_password(self, client):
        """Test login with wrong password gives the same answer as an unknown email."""
        client.post("/api/auth/signup", json=test_user_data)

        wrong_login = test_login_data.copy()
        wrong_login["password"] = "wrongpassword"

        response = client.post("/api/auth/login", json=wrong_login)
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized", "message": "Invalid credentials"}

    def test_get_current_user(self, client, register):
        """Test getting current user info."""
        headers, user = register("doctor@example.com", role="doctor")

        response = client.get("/api/auth/me", headers=headers)
        assert response.status_code == 200

        data = response.json()
        assert data["id"] == user["id"]
        assert data["email"] == "doctor@example.com"
        assert data["role"] == "doctor"

    def test_get_current_user_invalid_token(self, client):
        """Test get current user with invalid token."""
        headers = {"Authorization": "Bearer invalid_token"}

        response = client.get("/api/auth/me", headers=headers)
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_get_current_user_without_token(self, client):
        response = client.get("/api/auth/me")
        assert response.status_code == 401

    def test_rate_limit(self, client):
        """Test that auth endpoints are throttled per client."""
        for _ in range(10):
            response = client.post("/api/auth/login", json=test_login_data)
            assert response.status_code == 401

        response = client.post("/api/auth/login", json=test_login_data)
        assert response.status_code == 429
        assert "Too many requests" in response.json()["message"]


class TestAuthService:

    def test_sign_up_rejects_unknown_role(self, database, count_rows):
        service = AuthService(database)

        with pytest.raises(ValidationError):
            service.sign_up("nurse@example.com", "Password123", "Nurse", "nurse")
        assert count_rows("users") == 0

    def test_sign_up_duplicate_is_conflict(self, database, count_rows):
        service = AuthService(database)
        service.sign_up("doc@example.com", "Password123", "Doc", "doctor")

        with pytest.raises(Conflict):
            service.sign_up("doc@example.com", "Password456", "Other", "patient")
        assert count_rows("users") == 1

    def test_sign_up_stores_hash_not_password(self, database):
        service = AuthService(database)
        user = service.sign_up("doc@example.com", "Password123", "Doc", "doctor")

        assert "password_hash" not in user
        stored = database.execute(
            "SELECT password_hash FROM users WHERE id = :id", {"id": user["id"]}
        )[0]["password_hash"]
        assert stored != "Password123"
        assert stored.startswith("$2")

    def test_log_in_never_returns_password(self, database):
        service = AuthService(database)
        service.sign_up("doc@example.com", "Password123", "Doc", "doctor")

        result = service.log_in("doc@example.com", "Password123")
        assert "password_hash" not in result["user"]
        assert "password" not in result["user"]

        with pytest.raises(Unauthorized):
            service.log_in("doc@example.com", "Password999")

    def test_patient_sign_up_links_existing_record(self, database):
        auth_service = AuthService(database)
        patient_service = PatientService(database)

        doctor = auth_service.sign_up("doc@example.com", "Password123", "Doc", "doctor")
        patient_id = patient_service.create(doctor["id"], {
            "full_name": "Jane Roe",
            "email": "jane@example.com",
        })

        patient_user = auth_service.sign_up("jane@example.com", "Password123", "Jane", "patient")
        assert patient_service.find_for_user(patient_user["id"]) == [patient_id]
