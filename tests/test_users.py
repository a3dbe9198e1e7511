import pytest

from blogapi.core.errors import ConflictError, NotFoundError

from factories import DEFAULT_PASSWORD, auth_headers, make_post, make_user


def test_create_user_returns_token(client, auth):
    response = client.post("/users", json={
        "name": "Jane Doe",
        "email": "jane@example.com",
        "password": "password123",
    })

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "User created successfully"
    assert body["data"]["email"] == "jane@example.com"
    assert "password" not in body["data"]
    assert "hashed_password" not in body["data"]
    assert auth.validate_token(body["token"]) == body["data"]["id"]


@pytest.mark.parametrize("payload", [
    {"name": "Jane", "email": "not-an-email", "password": "password123"},
    {"email": "jane@example.com", "password": "password123"},
    {"name": "Jane", "email": "jane@example.com"},
    {"name": "", "email": "jane@example.com", "password": "password123"},
])
def test_create_user_with_invalid_payload(client, payload):
    response = client.post("/users", json=payload)

    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid request data")


def test_create_user_with_duplicate_email(client, users):
    make_user(users, email="taken@example.com")

    response = client.post("/users", json={
        "name": "Someone Else",
        "email": "taken@example.com",
        "password": "password123",
    })

    assert response.status_code == 409
    assert response.json() == {"error": "email already registered"}


def test_get_user(client, users):
    user = make_user(users, name="Jane Doe")

    response = client.get(f"/users/{user.id}")

    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Jane Doe"
    assert response.json()["message"] == "User retrieved successfully"


def test_get_missing_user(client):
    response = client.get("/users/9999")

    assert response.status_code == 404
    assert response.json() == {"error": "user not found"}


def test_get_user_with_invalid_id(client):
    response = client.get("/users/abc")

    assert response.status_code == 400


def test_update_own_account(client, users, auth):
    user = make_user(users)

    response = client.patch(
        f"/users/{user.id}",
        json={"name": "Renamed User", "password": "new-password-1"},
        headers=auth_headers(auth, user),
    )

    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Renamed User"

    login = client.post("/auth/login", json={"email": user.email, "password": "new-password-1"})
    assert login.status_code == 200


def test_update_other_account_is_forbidden(client, users, auth):
    owner = make_user(users)
    intruder = make_user(users)

    response = client.patch(
        f"/users/{owner.id}",
        json={"name": "Hijacked"},
        headers=auth_headers(auth, intruder),
    )

    assert response.status_code == 403
    assert response.json() == {"error": "You can only update your own account"}


def test_update_missing_user_is_not_found(client, users, auth):
    user = make_user(users)

    response = client.patch("/users/9999", json={"name": "Nobody"}, headers=auth_headers(auth, user))

    assert response.status_code == 404


def test_update_user_requires_auth(client, users):
    user = make_user(users)

    response = client.patch(f"/users/{user.id}", json={"name": "Renamed"})

    assert response.status_code == 401
    assert response.json() == {"error": "Authorization header required"}


def test_delete_own_account_removes_posts(client, users, posts, auth):
    user = make_user(users)
    post = make_post(posts, user)
    headers = auth_headers(auth, user)

    response = client.delete(f"/users/{user.id}", headers=headers)

    assert response.status_code == 200
    assert response.json() == {"message": "User deleted successfully"}
    assert client.get(f"/users/{user.id}").status_code == 404
    assert client.get(f"/posts/{post.id}").status_code == 404


def test_delete_other_account_is_forbidden(client, users, auth):
    owner = make_user(users)
    intruder = make_user(users)

    response = client.delete(f"/users/{owner.id}", headers=auth_headers(auth, intruder))

    assert response.status_code == 403
    assert response.json() == {"error": "You can only delete your own account"}


def test_list_my_posts(client, users, posts, auth):
    user = make_user(users)
    other = make_user(users)
    make_post(posts, user)
    make_post(posts, user)
    make_post(posts, other)

    response = client.get("/users/me/posts", headers=auth_headers(auth, user))

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert {item["user_id"] for item in body["data"]} == {user.id}


def test_user_service_rejects_duplicate_email(users):
    make_user(users, email="dup@example.com")

    with pytest.raises(ConflictError):
        users.create("Other", "dup@example.com", DEFAULT_PASSWORD)


def test_user_service_get_by_email(users):
    user = make_user(users, email="find-me@example.com")

    assert users.get_by_email("find-me@example.com").id == user.id
    with pytest.raises(NotFoundError):
        users.get_by_email("missing@example.com")
