from folio_cms.models.result import ErrorKind
from folio_cms.services import users


def test_setup_creates_owner_once():
    assert not users.has_users()
    owner = users.setup_owner("Ada", "Ada@Example.com", "longenough").value
    assert owner["role"] == "owner"
    assert owner["email"] == "ada@example.com"
    assert "passwordHash" not in owner

    again = users.setup_owner("Bob", "bob@example.com", "longenough")
    assert again.kind == ErrorKind.BAD_REQUEST
    assert again.error == "Setup already complete"


def test_setup_requires_all_fields_and_password_length():
    assert users.setup_owner("", "a@b.com", "longenough").error == "Name, email, and password are required"
    short = users.setup_owner("Ada", "a@b.com", "short")
    assert short.kind == ErrorKind.VALIDATION
    assert short.errors == ["Password must be at least 8 characters"]
    assert not users.has_users()


def test_email_is_unique_case_insensitively(owner):
    users.create_user("ed@example.com", "Ed", "password1")
    assert users.create_user("ED@example.com", "Ed 2", "password1").kind == ErrorKind.CONFLICT


def test_second_owner_not_allowed(owner):
    assert users.create_user("x@example.com", "X", "password1", role="owner").kind == ErrorKind.BAD_REQUEST


def test_reads_never_expose_password_hash(owner):
    users.create_user("ed@example.com", "Ed", "password1")
    assert all("passwordHash" not in u for u in users.list_users())
    assert "passwordHash" not in users.get_user(owner["id"])
    assert "passwordHash" in users.get_user_by_email("ED@example.com")


def test_authenticate_stamps_last_login(owner):
    assert users.authenticate("owner@example.com", "wrong-password") is None
    user = users.authenticate("Owner@Example.com", "correct-horse")
    assert user["id"] == owner["id"]
    assert user["lastLoginAt"]
    assert users.get_user(owner["id"])["lastLoginAt"] == user["lastLoginAt"]


def test_update_user_password(owner):
    users.update_user(owner["id"], {"password": "new-password"})
    assert users.authenticate("owner@example.com", "new-password") is not None


def test_last_owner_cannot_be_deleted_or_demoted(owner):
    assert users.delete_user(owner["id"]).kind == ErrorKind.BAD_REQUEST
    assert users.update_user(owner["id"], {"role": "editor"}).kind == ErrorKind.BAD_REQUEST


def test_delete_editor(owner):
    ed = users.create_user("ed@example.com", "Ed", "password1").value
    assert users.delete_user(ed["id"]).ok
    assert users.get_user(ed["id"]) is None
