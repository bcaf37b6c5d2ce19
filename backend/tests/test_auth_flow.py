from __future__ import annotations

from jose import jwt

from conftest import START_EPOCH

EMAIL = "user@example.com"
PASSWORD = "pw1"
PROFILE = {
    "firstname": "Ada",
    "lastname": "Lovelace",
    "dob": "1815-12-10",
    "address": "12 St James's Square, London",
}


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def test_register_login_refresh_profile_scenario(client):
    res = client.post("/users/register", json={"email": EMAIL, "password": PASSWORD})
    assert res.status_code == 201
    assert res.json() == {"message": "User created"}

    res2 = client.post(
        "/users/login",
        json={
            "email": EMAIL,
            "password": PASSWORD,
            "bearerExpiresInSeconds": 600,
            "refreshExpiresInSeconds": 86400,
        },
    )
    assert res2.status_code == 200
    body = res2.json()
    assert body["bearerToken"]["token_type"] == "Bearer"
    assert body["bearerToken"]["expires_in"] == START_EPOCH + 600
    assert body["refreshToken"]["token_type"] == "Refresh"
    assert body["refreshToken"]["expires_in"] == START_EPOCH + 86400
    refresh_claims = jwt.get_unverified_claims(body["refreshToken"]["token"])
    assert refresh_claims["email"] == EMAIL
    assert "refresh_exp" in refresh_claims

    # Refresh rotates
    old_refresh = body["refreshToken"]["token"]
    res3 = client.post("/users/refresh", json={"refreshToken": old_refresh})
    assert res3.status_code == 200
    rotated = res3.json()
    assert rotated["refreshToken"]["token"] != old_refresh
    assert rotated["bearerToken"]["expires_in"] == START_EPOCH + 600
    assert rotated["refreshToken"]["expires_in"] == START_EPOCH + 86400

    # Same refresh again => the old token no longer matches any user
    res4 = client.post("/users/refresh", json={"refreshToken": old_refresh})
    assert res4.status_code == 401
    assert res4.json()["message"] == "User not found"

    # Profile update with the new bearer token
    bearer = rotated["bearerToken"]["token"]
    res5 = client.put(f"/users/{EMAIL}/profile", json=PROFILE, headers=_bearer(bearer))
    assert res5.status_code == 200
    assert res5.json() == PROFILE

    # Same update against another account's path => forbidden
    client.post("/users/register", json={"email": "other@example.com", "password": "pw2"})
    res6 = client.put("/users/other@example.com/profile", json=PROFILE, headers=_bearer(bearer))
    assert res6.status_code == 403
    assert res6.json()["message"] == "Forbidden"


def test_login_wrong_password_and_unknown_email_are_indistinguishable(client, registered_user):
    wrong_pw = client.post("/users/login", json={"email": registered_user.email, "password": "nope"})
    unknown = client.post("/users/login", json={"email": "ghost@example.com", "password": "nope"})

    assert wrong_pw.status_code == unknown.status_code == 401
    assert wrong_pw.json() == unknown.json()
    assert wrong_pw.json()["message"] == "Incorrect email or password"


def test_login_missing_fields_is_400(client):
    for payload in ({}, {"email": EMAIL}, {"password": PASSWORD}, {"email": "", "password": ""}):
        res = client.post("/users/login", json=payload)
        assert res.status_code == 400
        assert res.json()["message"] == "Request body incomplete, both email and password are required"


def test_login_without_body_is_400(client):
    res = client.post("/users/login")
    assert res.status_code == 400


def test_login_non_integer_ttl_is_400(client, registered_user):
    res = client.post(
        "/users/login",
        json={"email": registered_user.email, "password": "test_password_123", "bearerExpiresInSeconds": "soon"},
    )
    assert res.status_code == 400


def test_register_missing_fields_is_400(client):
    res = client.post("/users/register", json={"email": EMAIL})
    assert res.status_code == 400
    assert res.json()["message"] == "Request body incomplete, both email and password are required"


def test_register_duplicate_is_500(client):
    assert client.post("/users/register", json={"email": EMAIL, "password": PASSWORD}).status_code == 201

    res = client.post("/users/register", json={"email": EMAIL, "password": "something else"})
    assert res.status_code == 500
    assert res.json()["message"] == "User already exists"
    assert res.json()["code"] == "CONFLICT"

    # The original credentials still work
    ok = client.post("/users/login", json={"email": EMAIL, "password": PASSWORD})
    assert ok.status_code == 200


def test_refresh_missing_token_is_400(client):
    res = client.post("/users/refresh", json={})
    assert res.status_code == 400
    assert res.json()["message"] == "Request body incomplete, refresh token required"


def test_refresh_expired_token_is_401(client, registered_user, login, clock):
    body = login(registered_user.email, "test_password_123", refreshExpiresInSeconds=5)
    clock.advance(6)

    res = client.post("/users/refresh", json={"refreshToken": body["refreshToken"]["token"]})
    assert res.status_code == 401
    assert res.json()["message"] == "JWT token has expired"


def test_logout_then_profile_is_public_only(client, registered_user, login):
    body = login(registered_user.email, "test_password_123")
    bearer = body["bearerToken"]["token"]

    put = client.put(f"/users/{registered_user.email}/profile", json=PROFILE, headers=_bearer(bearer))
    assert put.status_code == 200

    # Live session: full profile, no token needed on the read itself
    full = client.get(f"/users/{registered_user.email}/profile")
    assert full.status_code == 200
    assert full.json() == {"email": registered_user.email, **PROFILE}

    out = client.post("/users/logout", json={"refreshToken": body["refreshToken"]["token"]})
    assert out.status_code == 200
    assert out.json() == {"error": False, "message": "Token successfully invalidated"}

    public = client.get(f"/users/{registered_user.email}/profile")
    assert public.status_code == 200
    assert public.json() == {
        "email": registered_user.email,
        "firstname": PROFILE["firstname"],
        "lastname": PROFILE["lastname"],
    }


def test_logout_twice_fails_second_time(client, registered_user, login):
    body = login(registered_user.email, "test_password_123")
    token = body["refreshToken"]["token"]

    assert client.post("/users/logout", json={"refreshToken": token}).status_code == 200

    again = client.post("/users/logout", json={"refreshToken": token})
    assert again.status_code == 500
    assert again.json()["message"] == "Refresh token not found"


def test_logout_errors(client, registered_user, login, clock):
    assert client.post("/users/logout", json={}).status_code == 400

    bad = client.post("/users/logout", json={"refreshToken": "garbage"})
    assert bad.status_code == 401

    body = login(registered_user.email, "test_password_123", refreshExpiresInSeconds=5)
    clock.advance(6)
    expired = client.post("/users/logout", json={"refreshToken": body["refreshToken"]["token"]})
    assert expired.status_code == 401
    assert expired.json()["message"] == "JWT token has expired"


def test_profile_read_unknown_user_is_404(client):
    res = client.get("/users/ghost@example.com/profile")
    assert res.status_code == 404
    assert res.json()["message"] == "User not found"


def test_profile_read_without_session_is_public(client, registered_user):
    res = client.get(f"/users/{registered_user.email}/profile")
    assert res.status_code == 200
    assert res.json() == {"email": registered_user.email, "firstname": None, "lastname": None}


def test_profile_read_with_undecodable_stored_token_is_401(client, registered_user, store):
    store.set_refresh_token(registered_user.email, "not-a-jwt")

    res = client.get(f"/users/{registered_user.email}/profile")
    assert res.status_code == 401
    assert res.json()["message"] == "Authorization header ('Bearer token') not found"


def test_profile_update_checks_body_before_header(client, registered_user):
    res = client.put(f"/users/{registered_user.email}/profile", json={"firstname": "Ada"})
    assert res.status_code == 400
    assert res.json()["message"] == (
        "Request body incomplete: firstname, lastname, dob, and address are required"
    )


def test_profile_update_requires_bearer_header(client, registered_user):
    res = client.put(f"/users/{registered_user.email}/profile", json=PROFILE)
    assert res.status_code == 401
    assert res.json()["message"] == "Authorization header ('Bearer token') not found"

    basic = client.put(
        f"/users/{registered_user.email}/profile",
        json=PROFILE,
        headers={"Authorization": "Basic dXNlcjpwYXNz"},
    )
    assert basic.status_code == 401


def test_profile_update_invalid_and_expired_token(client, registered_user, login, clock):
    bad = client.put(f"/users/{registered_user.email}/profile", json=PROFILE, headers=_bearer("garbage"))
    assert bad.status_code == 401
    assert bad.json()["message"] == "Invalid JWT token"

    body = login(registered_user.email, "test_password_123", bearerExpiresInSeconds=5)
    clock.advance(6)
    expired = client.put(
        f"/users/{registered_user.email}/profile",
        json=PROFILE,
        headers=_bearer(body["bearerToken"]["token"]),
    )
    assert expired.status_code == 401
    assert expired.json()["message"] == "JWT token has expired"


def test_profile_update_bad_date_is_400(client, registered_user, login):
    body = login(registered_user.email, "test_password_123")
    res = client.put(
        f"/users/{registered_user.email}/profile",
        json={**PROFILE, "dob": "tenth of december"},
        headers=_bearer(body["bearerToken"]["token"]),
    )
    assert res.status_code == 400
