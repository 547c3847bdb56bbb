from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from campus_library.models.principal import Admin, Gender, PrincipalMixin, PrincipalRole, Reader, Volunteer


class RegisterBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr = Field(max_length=255)
    password: str = Field(min_length=8, repr=False)
    password_confirmation: str = Field(alias="passwordConfirmation", repr=False)
    contact: Optional[str] = Field(default=None, max_length=255)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @model_validator(mode="after")
    def _passwords_match(self) -> "RegisterBase":
        if self.password != self.password_confirmation:
            raise ValueError("password confirmation does not match")
        return self


class ReaderRegister(RegisterBase):
    registration_no: Optional[str] = Field(default=None, alias="registrationNo", max_length=255)
    session: Optional[str] = Field(default=None, max_length=255)
    hall_id: str = Field(alias="hallId")
    dept_id: str = Field(alias="deptId")
    gender: Optional[Gender] = None


class VolunteerRegister(RegisterBase):
    registration_no: Optional[str] = Field(default=None, alias="registrationNo", max_length=255)
    session: Optional[str] = Field(default=None, max_length=255)
    address: Optional[str] = Field(default=None, max_length=255)
    room_no: Optional[int] = Field(default=None, alias="roomNo")
    hall_id: str = Field(alias="hallId")
    dept_id: str = Field(alias="deptId")


class AdminRegister(RegisterBase):
    pass


class LoginPayload(BaseModel):
    email: EmailStr
    password: str = Field(repr=False)

    model_config = ConfigDict(extra="forbid")


class PrincipalOutBase(BaseModel):
    id: str
    name: str
    email: EmailStr
    contact: Optional[str] = None
    role: PrincipalRole
    created_at: datetime = Field(alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True,
        extra="forbid",
        use_enum_values=True,
    )


class ReaderOut(PrincipalOutBase):
    registration_no: Optional[str] = Field(default=None, alias="registrationNo")
    session: Optional[str] = None
    hall_id: Optional[str] = Field(default=None, alias="hallId")
    dept_id: Optional[str] = Field(default=None, alias="deptId")
    gender: Optional[Gender] = None
    is_verified: bool = Field(alias="isVerified")
    total_points: int = Field(alias="totalPoints")


class VolunteerOut(PrincipalOutBase):
    registration_no: Optional[str] = Field(default=None, alias="registrationNo")
    session: Optional[str] = None
    address: Optional[str] = None
    room_no: Optional[int] = Field(default=None, alias="roomNo")
    hall_id: Optional[str] = Field(default=None, alias="hallId")
    dept_id: Optional[str] = Field(default=None, alias="deptId")
    is_available: bool = Field(alias="isAvailable")
    is_verified: bool = Field(alias="isVerified")


class AdminOut(PrincipalOutBase):
    pass


PrincipalOut = Union[ReaderOut, VolunteerOut, AdminOut]


class AuthResponse(BaseModel):
    message: str
    user: PrincipalOut
    token: str
    token_type: str = Field(default="bearer", alias="tokenType")

    model_config = ConfigDict(populate_by_name=True)


class VolunteerContact(BaseModel):
    id: str
    name: str
    email: EmailStr
    contact: Optional[str] = None
    address: Optional[str] = None
    room_no: Optional[int] = Field(default=None, alias="roomNo")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class ReaderUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    contact: Optional[str] = Field(default=None, max_length=255)
    registration_no: Optional[str] = Field(default=None, alias="registrationNo", max_length=255)
    session: Optional[str] = Field(default=None, max_length=255)
    hall_id: Optional[str] = Field(default=None, alias="hallId")
    dept_id: Optional[str] = Field(default=None, alias="deptId")
    gender: Optional[Gender] = None
    is_verified: Optional[bool] = Field(default=None, alias="isVerified")

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


_OUT_SCHEMAS: dict[type[PrincipalMixin], type[PrincipalOutBase]] = {
    Reader: ReaderOut,
    Volunteer: VolunteerOut,
    Admin: AdminOut,
}


def principal_to_schema(principal: PrincipalMixin) -> PrincipalOutBase:
    """Convert a Reader, Volunteer or Admin row to its output schema."""
    return _OUT_SCHEMAS[type(principal)].model_validate(principal)
