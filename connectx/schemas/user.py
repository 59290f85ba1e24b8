"""Pydantic schemas for `User` domain objects.

No response schema here declares a password field; returning a `User` through
any of them drops the credential.
"""

from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, EmailStr, Field, field_validator

from connectx.schemas.base import CamelModel


USERNAME_MIN_LENGTH = 3
PASSWORD_MIN_LENGTH = 6


class UserCreate(CamelModel):
	username: str = Field(..., min_length=USERNAME_MIN_LENGTH, max_length=50)
	email: EmailStr
	password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=128)
	full_name: Optional[str] = Field(None, max_length=255)
	profile_image: Optional[str] = Field(None, max_length=500)
	bio: Optional[str] = None

	@field_validator("username")
	@classmethod
	def validate_username(cls, v: str) -> str:
		v = v.strip()
		if len(v) < USERNAME_MIN_LENGTH:
			raise ValueError(f"Username must be at least {USERNAME_MIN_LENGTH} characters")
		if any(ch.isspace() for ch in v):
			raise ValueError("Username must not contain whitespace")
		return v

	model_config = ConfigDict(json_schema_extra={
		"example": {
			"username": "alice",
			"email": "alice@example.com",
			"password": "secret1",
			"fullName": "Alice Liddell",
			"profileImage": "https://randomuser.me/api/portraits/women/1.jpg",
			"bio": "Down the rabbit hole",
		}
	})


class UserLogin(CamelModel):
	username: str = Field(..., min_length=USERNAME_MIN_LENGTH)
	password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)

	@field_validator("username")
	@classmethod
	def strip_username(cls, v: str) -> str:
		# Usernames are stored trimmed at registration
		v = v.strip()
		if len(v) < USERNAME_MIN_LENGTH:
			raise ValueError(f"Username must be at least {USERNAME_MIN_LENGTH} characters")
		return v

	model_config = ConfigDict(json_schema_extra={
		"example": {
			"username": "alice",
			"password": "secret1",
		}
	})


class UserSummary(CamelModel):
	"""Author block embedded in posts and comments."""
	id: int
	username: str
	profile_image: Optional[str] = None


class UserResponse(CamelModel):
	id: int
	username: str
	email: str
	full_name: Optional[str] = None
	profile_image: Optional[str] = None
	bio: Optional[str] = None
	created_at: datetime


class UserProfileResponse(UserResponse):
	"""Profile page payload with live relationship counts."""
	post_count: int = 0
	follower_count: int = 0
	following_count: int = 0
	is_following: bool = False


class AuthResponse(CamelModel):
	user: UserResponse
	access_token: str
	token_type: str = "bearer"


class FollowToggleResponse(CamelModel):
	following: bool
