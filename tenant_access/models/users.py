from pydantic import BaseModel, EmailStr, field_validator


class PrincipalCreate(BaseModel):
    """Organization-independent principal created by onboarding flows."""
    email: EmailStr
    name: str
    nickname: str | None = None
    password: str
    temp_password: bool = True
    is_platform_super_admin: bool = False
    is_platform_system_admin: bool = False

    @field_validator("email", mode="after")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return value.lower()

    def to_row(self) -> dict:
        return {
            "email": self.email,
            "name": self.name,
            "nickname": self.nickname,
            "password_hash": self.password,  # stored as supplied, see auth.lifecycle
            "temp_password": self.temp_password,
            "is_active": True,
            "is_platform_super_admin": self.is_platform_super_admin,
            "is_platform_system_admin": self.is_platform_system_admin,
        }
