from .principal import (
    AdminOut,
    AdminRegister,
    AuthResponse,
    LoginPayload,
    ReaderOut,
    ReaderRegister,
    ReaderUpdate,
    VolunteerContact,
    VolunteerOut,
    VolunteerRegister,
    principal_to_schema,
)

__all__ = [
    "AdminOut",
    "AdminRegister",
    "AuthResponse",
    "LoginPayload",
    "ReaderOut",
    "ReaderRegister",
    "ReaderUpdate",
    "VolunteerContact",
    "VolunteerOut",
    "VolunteerRegister",
    "principal_to_schema",
]
