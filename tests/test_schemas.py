"""Unit tests for payload validation."""

import pytest

from connectx.core.exceptions import ValidationError
from connectx.schemas import (
    CommentCreate,
    PostCreate,
    UserCreate,
    UserLogin,
    UserResponse,
    validate_payload,
)


class TestValidatePayload:
    """Tests for validate_payload."""

    def test_valid_user_is_normalized(self):
        """Whitespace around the username is trimmed and camelCase keys are accepted."""
        user = validate_payload(UserCreate, {
            "username": "  alice ",
            "email": "alice@x.com",
            "password": "secret1",
            "fullName": "Alice",
        })
        assert user.username == "alice"
        assert user.full_name == "Alice"
        assert user.profile_image is None

    def test_snake_case_input_accepted(self):
        post = validate_payload(PostCreate, {"image_url": "https://img/1.jpg"})
        assert post.image_url == "https://img/1.jpg"
        assert post.caption is None

    def test_every_failing_field_is_reported(self):
        """All violations come back at once, not just the first."""
        with pytest.raises(ValidationError) as exc_info:
            validate_payload(UserCreate, {
                "username": "al",
                "email": "not-an-email",
                "password": "123",
            })

        fields = {err["field"] for err in exc_info.value.errors}
        assert fields == {"username", "email", "password"}
        assert exc_info.value.status_code == 400

    def test_missing_fields_reported(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_payload(UserLogin, {})

        fields = {err["field"] for err in exc_info.value.errors}
        assert fields == {"username", "password"}

    def test_login_username_is_trimmed(self):
        credentials = validate_payload(UserLogin, {"username": " alice  ", "password": "secret1"})
        assert credentials.username == "alice"

    def test_login_username_too_short_after_trim(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_payload(UserLogin, {"username": "  al  ", "password": "secret1"})
        assert exc_info.value.errors[0]["field"] == "username"

    def test_username_rejects_inner_whitespace(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_payload(UserCreate, {
                "username": "al ice",
                "email": "alice@x.com",
                "password": "secret1",
            })
        assert exc_info.value.errors[0]["field"] == "username"

    @pytest.mark.parametrize("content", ["", "   ", "\n\t"])
    def test_blank_comment_rejected(self, content):
        with pytest.raises(ValidationError) as exc_info:
            validate_payload(CommentCreate, {"content": content})
        assert exc_info.value.errors[0]["field"] == "content"

    def test_blank_image_url_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_payload(PostCreate, {"imageUrl": "  ", "caption": "hi"})
        assert [err["field"] for err in exc_info.value.errors] == ["imageUrl"]

    def test_instances_pass_through(self):
        comment = CommentCreate(content="nice!")
        assert validate_payload(CommentCreate, comment) is comment


class TestUserResponse:
    """Redaction of credentials in user-shaped output."""

    def test_password_never_serialized(self, make_user):
        user = make_user("alice", bio="hello")
        body = UserResponse.model_validate(user).model_dump(by_alias=True)

        assert body["username"] == "alice"
        assert body["bio"] == "hello"
        assert "password" not in body
        assert "passwordHash" not in body
        assert "password_hash" not in body
