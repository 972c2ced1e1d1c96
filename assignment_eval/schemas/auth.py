# assignment_eval/schemas/auth.py
from pydantic import BaseModel, EmailStr, ConfigDict

from assignment_eval.models.enums import UserRole


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class TokenData(BaseModel):
    email: EmailStr | None = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    name: str  # required, may repeat
    role: UserRole = UserRole.STUDENT


class UserPublic(BaseModel):

    id: int
    email: EmailStr
    name: str
    role: str

    model_config = ConfigDict(from_attributes=True)
