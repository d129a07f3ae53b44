import pytest

from social.models import Message, User
from .conftest import PASSWORD

pytestmark = pytest.mark.django_db


# ============================================================================
# ACCOUNTS
# ============================================================================

def test_register_starts_session(api_client):
    response = api_client.post_json("/api/auth/register", {
        "username": "dora",
        "email": "Dora@Example.com",
        "password": PASSWORD,
        "name": "Dora Explorer",
    })

    assert response.status_code == 201
    body = response.json()
    assert body["id"] == "dora@example.com"
    assert body["name"] == "Dora Explorer"
    assert body["followersCount"] == 0
    assert api_client.get("/api/auth/me").json()["username"] == "dora"


def test_register_rejects_duplicate_email(api_client, alice):
    response = api_client.post_json("/api/auth/register", {
        "username": "alice2",
        "email": "ALICE@example.com",
        "password": PASSWORD,
    })

    assert response.status_code == 400
    assert response.json()["error"] == "Email already registered."


def test_register_validates_fields(api_client):
    response = api_client.post_json("/api/auth/register", {"username": "x", "email": "bad"})

    assert response.status_code == 400
    assert "Username must be at least 3 characters." in response.json()["error"]


@pytest.mark.parametrize("identifier", ["alice", "alice@example.com"])
def test_login_by_handle_or_email(api_client, alice, identifier):
    response = api_client.post_json("/api/auth/login", {"identifier": identifier, "password": PASSWORD})

    assert response.status_code == 200
    assert response.json()["username"] == "alice"


def test_login_wrong_password(api_client, alice):
    response = api_client.post_json("/api/auth/login", {"identifier": "alice", "password": "nope"})

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid credentials"}


def test_logout_ends_session(client_for, alice):
    client = client_for(alice)

    assert client.post_json("/api/auth/logout").status_code == 200
    assert client.get("/api/auth/me").status_code == 401


def test_invalid_json_body(client_for, alice):
    client = client_for(alice)
    response = client.post("/api/follow/", data="{not json", content_type="application/json")

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid JSON body"}


@pytest.mark.parametrize("path", [
    "/api/auth/me",
    "/api/users/",
    "/api/follow/suggestions/",
    "/api/messages/conversations/",
    "/api/messages/unread-count/",
])
def test_protected_endpoints_need_session(api_client, path):
    response = api_client.get(path)

    assert response.status_code == 401
    assert response.json() == {"error": "Not authenticated"}


# ============================================================================
# PASSWORD RESET
# ============================================================================

def test_forgot_password_is_uniform(api_client, alice, settings):
    settings.PARLEY_EXPOSE_RESET_TOKEN = False

    known = api_client.post_json("/api/auth/forgot-password", {"email": alice.email})
    unknown = api_client.post_json("/api/auth/forgot-password", {"email": "x@example.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()
    assert "resetToken" not in unknown.json()


def test_forgot_and_reset_password(api_client, alice, settings):
    settings.PARLEY_EXPOSE_RESET_TOKEN = True

    token = api_client.post_json("/api/auth/forgot-password", {"email": alice.email}).json()["resetToken"]
    response = api_client.post_json("/api/auth/reset-password", {
        "token": token,
        "newPassword": "Fresh-Passw0rd-42",
    })

    assert response.status_code == 200
    assert response.json() == {"message": "Password reset successfully"}
    assert User.objects.get(pk=alice.pk).check_password("Fresh-Passw0rd-42")

    again = api_client.post_json("/api/auth/reset-password", {"token": token, "newPassword": "Fresh-Passw0rd-43"})
    assert again.status_code == 401


def test_unknown_email_never_exposes_token(api_client, settings):
    settings.PARLEY_EXPOSE_RESET_TOKEN = True

    response = api_client.post_json("/api/auth/forgot-password", {"email": "x@example.com"})

    assert response.status_code == 200
    assert "resetToken" not in response.json()


# ============================================================================
# USERS
# ============================================================================

def test_profile_and_missing_profile(client_for, alice, bob):
    client = client_for(alice)

    assert client.get("/api/users/bob/").json()["name"] == "Bob Builder"
    assert client.get("/api/users/nobody/").status_code == 404


def test_search_matches_handle_and_name(client_for, alice, bob, carol):
    client = client_for(alice)

    assert [u["username"] for u in client.get("/api/users/search", {"q": "build"}).json()] == ["bob"]
    assert client.get("/api/users/search", {"q": ""}).json() == []


def test_mentions_exclude_self_and_carry_flags(client_for, alice, bob):
    client_for(bob).post_json("/api/follow/", {"username": "alice"})
    client = client_for(User.objects.get(pk=alice.pk))

    results = client.get("/api/users/mentions", {"q": "b"}).json()

    assert [u["username"] for u in results] == ["bob"]
    assert results[0]["isFollower"] is True
    assert results[0]["isFollowing"] is False


# ============================================================================
# FOLLOW GRAPH
# ============================================================================

def test_follow_endpoints(client_for, alice, bob):
    client = client_for(alice)

    response = client.post_json("/api/follow/", {"username": "bob"})
    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Successfully followed user",
        "followersCount": 1,
        "followingCount": 1,
    }

    assert client.get("/api/follow/status/bob/").json() == {"isFollowing": True}
    assert client.get("/api/follow/counts/bob/").json() == {"followers": 1, "following": 0}
    assert [u["username"] for u in client.get("/api/follow/followers/bob/").json()] == ["alice"]
    assert [u["username"] for u in client.get("/api/follow/following/alice/").json()] == ["bob"]

    assert client.post_json("/api/follow/", {"username": "bob"}).status_code == 400

    response = client.delete("/api/follow/bob/")
    assert response.status_code == 200
    assert response.json()["followersCount"] == 0
    assert client.delete("/api/follow/bob/").status_code == 400


def test_follow_errors_map_to_status(client_for, alice):
    client = client_for(alice)

    assert client.post_json("/api/follow/", {"username": "alice"}).json() == {"error": "Cannot follow yourself"}
    assert client.post_json("/api/follow/", {"username": "nobody"}).status_code == 404
    assert client.post_json("/api/follow/", {}).status_code == 400


def test_suggestions_endpoint(client_for, alice, bob, carol, settings):
    settings.PARLEY_SUGGESTION_LIMIT = 1
    client = client_for(alice)

    assert [u["username"] for u in client.get("/api/follow/suggestions/").json()] == ["bob"]


# ============================================================================
# MESSAGES
# ============================================================================

def test_message_flow(client_for, alice, bob):
    alice_client = client_for(alice)
    bob_client = client_for(bob)

    sent = alice_client.post_json("/api/messages/send/", {
        "receiverUsername": "bob",
        "content": "hi bob",
        "replyToMessageId": "42",
    })
    assert sent.status_code == 200
    message = sent.json()["message"]
    assert message["senderUsername"] == "alice"
    assert message["replyToMessageId"] == "42"
    assert message["isDelivered"] is True

    assert bob_client.get("/api/messages/unread-count/").json() == {"unreadCount": 1}

    [summary] = bob_client.get("/api/messages/conversations/").json()
    assert summary["username"] == "alice"
    assert summary["lastMessage"] == "hi bob"
    assert summary["unreadCount"] == 1

    marked = bob_client.post_json("/api/messages/mark-read/alice/")
    assert marked.json() == {"success": True, "markedCount": 1}
    assert bob_client.get("/api/messages/unread-count/").json() == {"unreadCount": 0}

    history = alice_client.get("/api/messages/conversation/bob/").json()
    assert [m["content"] for m in history] == ["hi bob"]


def test_send_message_validation(client_for, alice):
    client = client_for(alice)

    missing = client.post_json("/api/messages/send/", {"receiverUsername": "bob"})
    assert missing.status_code == 400
    assert missing.json() == {"error": "Receiver username and content are required"}

    unknown = client.post_json("/api/messages/send/", {"receiverUsername": "nobody", "content": "hi"})
    assert unknown.status_code == 404


def test_edit_and_delete_message(client_for, alice, bob, make_message):
    message = make_message(alice, bob, "draft")
    client = client_for(alice)

    edited = client.put_json(f"/api/messages/{message.pk}/", {"content": "final"})
    assert edited.status_code == 200
    assert edited.json()["message"]["isEdited"] is True

    deleted = client.delete(f"/api/messages/{message.pk}/")
    assert deleted.json()["message"]["isDeleted"] is True
    assert Message.objects.get(pk=message.pk).is_deleted is True

    assert client.put_json(f"/api/messages/{message.pk}/", {"content": "again"}).status_code == 400
    assert client_for(bob).delete(f"/api/messages/{message.pk}/").status_code == 404


def test_wrong_method_is_rejected(client_for, alice):
    assert client_for(alice).get("/api/follow/").status_code == 405


# ============================================================================
# PROFILE FIELDS & INPUT TYPES
# ============================================================================

def test_register_accepts_profile_fields(api_client):
    response = api_client.post_json("/api/auth/register", {
        "username": "erin",
        "email": "erin@example.com",
        "password": PASSWORD,
        "birthdate": "1994-03-21",
        "gender": "female",
        "interests": ["climbing", " jazz ", ""],
    })

    assert response.status_code == 201
    me = api_client.get("/api/auth/me").json()
    assert me["birthdate"] == "1994-03-21"
    assert me["gender"] == "female"
    assert me["interests"] == ["climbing", "jazz"]


def test_me_defaults_for_profile_fields(client_for, alice):
    me = client_for(alice).get("/api/auth/me").json()

    assert me["birthdate"] is None
    assert me["gender"] == ""
    assert me["interests"] == []


@pytest.mark.parametrize("extra", [
    {"birthdate": "21/03/1994"},
    {"birthdate": "1994-02-30"},
    {"interests": "climbing"},
    {"interests": [1, 2]},
    {"gender": 7},
])
def test_register_rejects_bad_profile_fields(api_client, extra):
    body = {"username": "erin", "email": "erin@example.com", "password": PASSWORD}
    body.update(extra)

    response = api_client.post_json("/api/auth/register", body)

    assert response.status_code == 400
    assert not User.objects.filter(username="erin").exists()


@pytest.mark.parametrize("path, body", [
    ("/api/follow/", {"username": 5}),
    ("/api/messages/send/", {"receiverUsername": ["bob"], "content": "hi"}),
    ("/api/messages/send/", {"receiverUsername": "bob", "content": {"text": "hi"}}),
    ("/api/messages/send/", {"receiverUsername": "bob", "content": "hi", "type": ["text"]}),
    ("/api/auth/forgot-password", {"email": 123}),
    ("/api/auth/reset-password", {"token": 99, "newPassword": "Fresh-Passw0rd-42"}),
    ("/api/auth/login", {"identifier": 5, "password": PASSWORD}),
    ("/api/auth/register", {"username": ["x"], "email": "x@example.com", "password": PASSWORD}),
])
def test_non_string_fields_are_rejected(client_for, alice, bob, path, body):
    response = client_for(alice).post_json(path, body)

    assert response.status_code == 400
    assert "error" in response.json()


def test_follow_listings_are_public(api_client, alice, bob, client_for):
    client_for(alice).post_json("/api/follow/", {"username": "bob"})

    assert [u["username"] for u in api_client.get("/api/follow/followers/bob/").json()] == ["alice"]
    assert [u["username"] for u in api_client.get("/api/follow/following/alice/").json()] == ["bob"]
    assert api_client.get("/api/follow/counts/bob/").json() == {"followers": 1, "following": 0}
    assert api_client.get("/api/follow/status/bob/").status_code == 401
