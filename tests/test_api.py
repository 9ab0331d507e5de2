"""HTTP API tests: auth and password recovery, quiz history, admin tools."""

import re
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from storefront.database.collection_store import get_store
from storefront.entities.quiz import Quiz, UserQuiz
from storefront.main import app
from storefront.repositories.quiz import QuizRepository, UserQuizRepository
from storefront.repositories.user import UserRepository
from storefront.services.auth import create_access_token
from storefront.services.exceptions import SmsDeliveryError
from storefront.services.sms import SmsGateway, SmsService, get_sms_service
from storefront.utils.passwords import verify_password

DEFAULT_PASSWORD = "Secret123"


class RecordingGateway(SmsGateway):
    def __init__(self, failing=()):
        self.failing = set(failing)
        self.sent = []

    async def send(self, to, body):
        if to in self.failing:
            raise SmsDeliveryError("Queue overflow")
        self.sent.append((to, body))
        return f"SM{len(self.sent)}"

    async def fetch_account(self):
        return {}

    async def fetch_message(self, message_id):
        return {}

    async def list_messages(self, sent_after=None, sent_before=None):
        return []


@pytest.fixture
def gateway():
    return RecordingGateway(failing={"+14155550002"})


@pytest.fixture
def client(store, gateway):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_sms_service] = lambda: SmsService(gateway)
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_header(user):
    return {"Authorization": f"Bearer {create_access_token(user.id, role=user.role)}"}


def sent_code(gateway):
    return re.search(r"\b(\d{6})\b", gateway.sent[-1][1]).group(1)


class TestAuth:
    def test_login_returns_token(self, client, make_user):
        user = make_user()

        response = client.post(
            "/api/auth/login", json={"email": user.email, "password": DEFAULT_PASSWORD}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["token"]
        assert data["user"]["email"] == user.email
        assert "password" not in data["user"]
        assert data["mustChangePassword"] is False

    def test_login_wrong_password(self, client, make_user):
        make_user()

        response = client.post(
            "/api/auth/login", json={"email": "customer@example.com", "password": "nope"}
        )

        assert response.status_code == 401
        assert response.json()["success"] is False
        assert response.json()["message"] == "Invalid credentials"

    def test_inactive_account_cannot_login(self, client, make_user):
        make_user(is_active=False)

        response = client.post(
            "/api/auth/login",
            json={"email": "customer@example.com", "password": DEFAULT_PASSWORD},
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Account is deactivated"

    def test_me_requires_token(self, client):
        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["success"] is False
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    def test_me_rejects_garbage_token(self, client):
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    def test_me(self, client, make_user):
        user = make_user()

        response = client.get("/api/auth/me", headers=auth_header(user))

        assert response.status_code == 200
        assert response.json()["data"]["user"]["_id"] == user.id


class TestPasswordReset:
    def request_token(self, client, gateway, email="customer@example.com"):
        client.post("/api/auth/forgot-password", json={"email": email})
        response = client.post(
            "/api/auth/verify-reset-otp", json={"email": email, "code": sent_code(gateway)}
        )
        assert response.status_code == 200
        return response.json()["data"]["resetToken"]

    def test_full_reset_flow(self, client, store, gateway, make_user):
        make_user(phone="+14155551234")
        token = self.request_token(client, gateway)

        response = client.post(
            "/api/auth/reset-password", json={"resetToken": token, "newPassword": "Str0ngPass1"}
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Password has been reset successfully",
        }
        user = UserRepository(store).find_by_email("customer@example.com")
        assert verify_password("Str0ngPass1", user.password)
        assert user.reset_token_hash is None

        login = client.post(
            "/api/auth/login", json={"email": user.email, "password": "Str0ngPass1"}
        )
        assert login.status_code == 200

    @pytest.mark.parametrize(
        "password, rule",
        [
            ("str0ngpass1", "One uppercase letter"),
            ("StrongPassword", "One number"),
            ("Sh0rt1", "At least 8 characters"),
        ],
    )
    def test_weak_password_is_rejected_before_any_change(
        self, client, store, gateway, make_user, password, rule
    ):
        make_user(phone="+14155551234")
        token = self.request_token(client, gateway)

        response = client.post(
            "/api/auth/reset-password", json={"resetToken": token, "newPassword": password}
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"].startswith("Password must include:")
        assert rule in body["errors"]
        user = UserRepository(store).find_by_email("customer@example.com")
        assert verify_password(DEFAULT_PASSWORD, user.password)
        assert user.reset_token_hash is not None

    def test_reset_token_is_single_use(self, client, gateway, make_user):
        make_user(phone="+14155551234")
        token = self.request_token(client, gateway)
        payload = {"resetToken": token, "newPassword": "Str0ngPass1"}

        assert client.post("/api/auth/reset-password", json=payload).status_code == 200
        second = client.post("/api/auth/reset-password", json=payload)

        assert second.status_code == 400
        assert second.json()["message"] == "Invalid or expired reset token"

    def test_unknown_reset_token(self, client):
        response = client.post(
            "/api/auth/reset-password",
            json={"resetToken": "unknown", "newPassword": "Str0ngPass1"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_RESET_TOKEN"

    def test_expired_reset_token(self, client, store, gateway, make_user):
        make_user(phone="+14155551234")
        token = self.request_token(client, gateway)
        repo = UserRepository(store)
        user = repo.find_by_email("customer@example.com")
        repo.update(user, reset_token_expires=datetime.now(timezone.utc) - timedelta(minutes=1))

        response = client.post(
            "/api/auth/reset-password", json={"resetToken": token, "newPassword": "Str0ngPass1"}
        )

        assert response.status_code == 400

    def test_forgot_password_does_not_reveal_accounts(self, client, gateway):
        response = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert gateway.sent == []

    def test_wrong_code_counts_attempts(self, client, gateway, make_user):
        make_user(phone="+14155551234")
        client.post("/api/auth/forgot-password", json={"email": "customer@example.com"})
        wrong = "000000" if sent_code(gateway) != "000000" else "111111"

        response = client.post(
            "/api/auth/verify-reset-otp", json={"email": "customer@example.com", "code": wrong}
        )

        assert response.status_code == 400
        assert response.json()["remainingAttempts"] == 4

    def test_code_locks_after_max_attempts(self, client, gateway, make_user):
        make_user(phone="+14155551234")
        client.post("/api/auth/forgot-password", json={"email": "customer@example.com"})
        code = sent_code(gateway)
        wrong = "000000" if code != "000000" else "111111"
        for _ in range(5):
            client.post(
                "/api/auth/verify-reset-otp",
                json={"email": "customer@example.com", "code": wrong},
            )

        response = client.post(
            "/api/auth/verify-reset-otp", json={"email": "customer@example.com", "code": code}
        )

        assert response.status_code == 400
        assert response.json()["remainingAttempts"] == 0

    def test_code_with_space_is_accepted(self, client, gateway, make_user):
        make_user(phone="+14155551234")
        client.post("/api/auth/forgot-password", json={"email": "customer@example.com"})
        code = sent_code(gateway)

        response = client.post(
            "/api/auth/verify-reset-otp",
            json={"email": "customer@example.com", "code": f"{code[:3]} {code[3:]}"},
        )

        assert response.status_code == 200


class TestChangePassword:
    def test_first_login_change_clears_flag(self, client, store):
        from storefront.services.admin_provisioning import AdminProvisioningService

        result = AdminProvisioningService(store).provision("admin@dollerselectro.com")
        login = client.post(
            "/api/auth/login",
            json={"email": "admin@dollerselectro.com", "password": result.temporary_password},
        )
        assert login.json()["data"]["mustChangePassword"] is True
        headers = {"Authorization": f"Bearer {login.json()['data']['token']}"}

        response = client.post(
            "/api/auth/change-password",
            json={"currentPassword": result.temporary_password, "newPassword": "N3wAdminPass"},
            headers=headers,
        )

        assert response.status_code == 200
        me = client.get("/api/auth/me", headers=headers).json()["data"]["user"]
        assert me["mustChangePassword"] is False

    def test_wrong_current_password(self, client, make_user):
        user = make_user()

        response = client.post(
            "/api/auth/change-password",
            json={"currentPassword": "wrong", "newPassword": "N3wPassword"},
            headers=auth_header(user),
        )

        assert response.status_code == 401


class TestQuiz:
    @pytest.fixture
    def quizzes(self, store):
        repo = QuizRepository(store)
        return [
            repo.insert_one(Quiz(title="Wiring Basics", category="electrical", points=10)),
            repo.insert_one(
                Quiz(title="Lighting Pro", category="lighting", difficulty="hard", points=30)
            ),
            repo.insert_one(Quiz(title="Retired", category="electrical", is_active=False)),
        ]

    def test_lists_active_quizzes(self, client, make_user, quizzes):
        user = make_user()

        response = client.get("/api/quiz", headers=auth_header(user))

        titles = {q["title"] for q in response.json()["data"]["quizzes"]}
        assert titles == {"Wiring Basics", "Lighting Pro"}

    def test_filters_by_difficulty(self, client, make_user, quizzes):
        response = client.get(
            "/api/quiz", params={"difficulty": "hard"}, headers=auth_header(make_user())
        )

        assert [q["title"] for q in response.json()["data"]["quizzes"]] == ["Lighting Pro"]

    def test_history_newest_first_with_quiz_summary(self, client, store, make_user, quizzes):
        user = make_user()
        other = make_user(email="other@example.com")
        repo = UserQuizRepository(store)
        base = datetime(2024, 5, 1, tzinfo=timezone.utc)
        for day, quiz in enumerate([quizzes[0], quizzes[1], quizzes[0]]):
            repo.insert_one(
                UserQuiz(
                    user=user.id,
                    quiz=quiz.id,
                    score=50 + day * 10,
                    time_spent=120,
                    is_completed=True,
                    completed_at=base + timedelta(days=day),
                )
            )
        repo.insert_one(UserQuiz(user=user.id, quiz=quizzes[1].id, score=0, time_spent=5))
        repo.insert_one(
            UserQuiz(user=other.id, quiz=quizzes[1].id, score=90, time_spent=60, is_completed=True)
        )

        response = client.get(
            "/api/quiz/user/history", params={"limit": 2}, headers=auth_header(user)
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        attempts = body["data"]["userQuizzes"]
        assert [a["score"] for a in attempts] == [70, 60]
        assert attempts[0]["id"] == attempts[0]["_id"]
        assert attempts[0]["quiz"]["title"] == "Wiring Basics"
        assert attempts[1]["quiz"]["difficulty"] == "hard"
        assert attempts[1]["quiz"]["points"] == 30
        assert "questions" not in attempts[1]["quiz"]
        assert body["data"]["pagination"] == {"current": 1, "pages": 2, "total": 3}

    def test_history_second_page(self, client, store, make_user, quizzes):
        user = make_user()
        repo = UserQuizRepository(store)
        for day in range(3):
            repo.insert_one(
                UserQuiz(
                    user=user.id,
                    quiz=quizzes[0].id,
                    score=day,
                    time_spent=1,
                    is_completed=True,
                    completed_at=datetime(2024, 5, 1 + day, tzinfo=timezone.utc),
                )
            )

        response = client.get(
            "/api/quiz/user/history", params={"page": 2, "limit": 2}, headers=auth_header(user)
        )

        data = response.json()["data"]
        assert [a["score"] for a in data["userQuizzes"]] == [0]
        assert data["pagination"]["current"] == 2

    def test_history_requires_auth(self, client):
        response = client.get("/api/quiz/user/history")

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Access token required"


class TestAdmin:
    @pytest.fixture
    def admin(self, store):
        from storefront.services.admin_provisioning import AdminProvisioningService

        return AdminProvisioningService(store).provision("admin@dollerselectro.com").user

    def test_admin_creates_employee(self, client, store, admin):
        payload = {
            "email": "staff@example.com",
            "firstName": "Sam",
            "lastName": "Staff",
            "role": "employee",
            "department": "sales",
        }

        response = client.post("/api/admin/employees", json=payload, headers=auth_header(admin))

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["user"]["role"] == "employee"
        assert data["user"]["supervisor"] == admin.id
        assert "password" not in data["user"]
        stored = UserRepository(store).find_by_email("staff@example.com")
        assert verify_password(data["temporaryPassword"], stored.password)
        assert stored.must_change_password is True

    def test_existing_account_conflicts(self, client, store, admin):
        payload = {"email": "staff@example.com", "firstName": "Sam", "lastName": "Staff"}
        client.post("/api/admin/employees", json=payload, headers=auth_header(admin))
        before = UserRepository(store).find_by_email("staff@example.com").password

        response = client.post("/api/admin/employees", json=payload, headers=auth_header(admin))

        assert response.status_code == 409
        assert UserRepository(store).find_by_email("staff@example.com").password == before

    def test_password_field_is_ignored(self, client, store, admin):
        payload = {
            "email": "staff@example.com",
            "firstName": "Sam",
            "lastName": "Staff",
            "password": "Chosen123",
        }

        response = client.post("/api/admin/employees", json=payload, headers=auth_header(admin))

        stored = UserRepository(store).find_by_email("staff@example.com")
        assert not verify_password("Chosen123", stored.password)
        assert verify_password(response.json()["data"]["temporaryPassword"], stored.password)

    def test_customer_is_forbidden(self, client, make_user):
        response = client.post(
            "/api/admin/employees",
            json={"email": "x@example.com", "firstName": "X", "lastName": "Y"},
            headers=auth_header(make_user()),
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

    def test_list_users_with_search(self, client, admin, make_user):
        make_user(email="alice@example.com")
        make_user(email="bob@example.com")

        response = client.get(
            "/api/admin/users", params={"q": "alice"}, headers=auth_header(admin)
        )

        data = response.json()["data"]
        assert data["total"] == 1
        assert data["users"][0]["email"] == "alice@example.com"

    def test_list_users_by_role(self, client, admin, make_user):
        make_user(email="alice@example.com")
        make_user(email="staff@example.com", role="employee")

        response = client.get(
            "/api/admin/users", params={"role": "employee"}, headers=auth_header(admin)
        )

        data = response.json()["data"]
        assert [u["email"] for u in data["users"]] == ["staff@example.com"]

    def test_bulk_sms(self, client, gateway, admin):
        numbers = ["+14155550001", "+14155550002", "abc-not-a-phone"]

        response = client.post(
            "/api/admin/sms/bulk",
            json={"phoneNumbers": numbers, "message": "Store opens at 9"},
            headers=auth_header(admin),
        )

        data = response.json()["data"]
        assert [r["phoneNumber"] for r in data["results"]] == numbers
        assert [r["status"] for r in data["results"]] == ["sent", "failed", "failed"]
        assert (data["total"], data["sent"], data["failed"]) == (3, 1, 2)

    def test_low_stock_alerts(self, client, gateway, admin, make_product):
        make_product(name="LED Bulb", stock=2)
        make_product(name="Smart Plug", stock=40)

        listing = client.get("/api/admin/alerts/low-stock", headers=auth_header(admin))
        notify = client.post(
            "/api/admin/alerts/low-stock/notify",
            json={"phoneNumber": "+14155551234"},
            headers=auth_header(admin),
        )

        assert [p["name"] for p in listing.json()["data"]["products"]] == ["LED Bulb"]
        assert notify.json()["data"]["alerts"][0]["sent"] is True
        assert "LED Bulb is running low (2 remaining)" in gateway.sent[-1][1]
