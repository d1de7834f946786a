from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from tourbook.auth.user_model import UserRead, UserRole


class _CamelModel(BaseModel):
    """Request bodies use camelCase (passwordConfirm); Python code uses snake_case."""

    model_config = ConfigDict(populate_by_name=True)


class SignupRequest(_CamelModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str
    password_confirm: str = Field(alias="passwordConfirm")


class LoginRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class ForgotPasswordRequest(BaseModel):
    email: str = Field(min_length=1)


class ResetPasswordRequest(_CamelModel):
    password: str
    password_confirm: str = Field(alias="passwordConfirm")


class UpdatePasswordRequest(_CamelModel):
    current_password: str = Field(alias="currentPassword")
    password: str
    password_confirm: str = Field(alias="passwordConfirm")


class UpdateMeRequest(_CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    # Presentes solo para rechazar el intento con un mensaje claro.
    password: Optional[str] = None
    password_confirm: Optional[str] = Field(default=None, alias="passwordConfirm")


class AdminCreateUserRequest(SignupRequest):
    role: UserRole = UserRole.USER


class AdminUpdateUserRequest(_CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    photo: Optional[str] = None
    active: Optional[bool] = None
    password: Optional[str] = None
    password_confirm: Optional[str] = Field(default=None, alias="passwordConfirm")


class UserData(BaseModel):
    user: UserRead


class UsersData(BaseModel):
    users: List[UserRead]


class TokenResponse(BaseModel):
    """Respuesta de signup/login/cambio de contraseña con token y usuario saneado."""

    status: Literal["success"] = "success"
    token: str
    data: UserData


class UserResponse(BaseModel):
    status: Literal["success"] = "success"
    data: UserData


class UserListResponse(BaseModel):
    status: Literal["success"] = "success"
    results: int
    data: UsersData


class MessageResponse(BaseModel):
    status: Literal["success"] = "success"
    message: str
