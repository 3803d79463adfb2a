import pytest
from httpx import AsyncClient

from lms_admin.auth import services


def test_login_stubs_need_both_credentials() -> None:
    assert services.makro_login("somchai", "") is None
    assert services.form_login(None, "secret") is None

    user = services.form_login("malee@example.com", "secret")
    assert user.name == "malee"
    assert user.role == "Student"
    assert services.makro_login("somchai", "pw").employee_id.startswith("MKR-")


def test_session_payload_uses_camel_case_employee_id() -> None:
    payload = services.sso_user("makro").to_session()

    assert payload["employeeId"] == "MKR-005678"
    assert payload["role"] == "Manager"


@pytest.mark.asyncio
async def test_root_sends_anonymous_users_to_login(client: AsyncClient) -> None:
    response = await client.get("/")

    assert response.status_code == 302
    assert response.headers["location"] == "/login"


@pytest.mark.asyncio
async def test_login_pages_render(client: AsyncClient) -> None:
    assert (await client.get("/login")).status_code == 200
    assert (await client.get("/login-form")).status_code == 200


@pytest.mark.asyncio
async def test_unknown_sso_organization(client: AsyncClient) -> None:
    response = await client.get("/auth/sso/acme")

    assert response.status_code == 302
    assert response.headers["location"] == "/login"
    assert (await client.get("/")).headers["location"] == "/login"


@pytest.mark.asyncio
async def test_sso_login_starts_a_session(auth_client: AsyncClient) -> None:
    assert (await auth_client.get("/")).headers["location"] == "/dashboard"
    assert (await auth_client.get("/login")).headers["location"] == "/dashboard"


@pytest.mark.asyncio
async def test_missing_credentials_rerender_with_error(client: AsyncClient) -> None:
    makro = await client.post("/auth/login/makro", data={"username": "somchai"})
    assert makro.status_code == 200
    assert "Please enter username and password" in makro.text

    form = await client.post("/auth/login", data={"email": "", "password": "x"})
    assert form.status_code == 200
    assert "Please enter email and password" in form.text


@pytest.mark.asyncio
async def test_form_login_then_logout(client: AsyncClient) -> None:
    login = await client.post("/auth/login", data={"email": "malee@example.com", "password": "secret"})
    assert login.headers["location"] == "/dashboard"
    assert (await client.get("/course")).status_code == 200

    logout = await client.get("/logout")
    assert logout.headers["location"] == "/login"
    assert (await client.get("/course")).headers["location"] == "/login"


@pytest.mark.asyncio
async def test_shortcut_redirects(client: AsyncClient) -> None:
    assert (await client.get("/home")).headers["location"] == "/dashboard"
    assert (await client.get("/courses")).headers["location"] == "/course"


@pytest.mark.asyncio
async def test_health_and_status(client: AsyncClient) -> None:
    health = (await client.get("/health")).json()
    assert health == {"status": "ok", "database": "ok", "redis": "ok"}

    status = (await client.get("/api/status")).json()
    assert status["status"] == "ok"
    assert status["services"] == {"database": "connected", "redis": "connected"}


@pytest.mark.asyncio
async def test_health_reports_redis_down(client: AsyncClient, cache) -> None:
    cache.is_open = False

    health = (await client.get("/health")).json()

    assert health["redis"] == "error"
    assert health["database"] == "ok"
