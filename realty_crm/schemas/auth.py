"""
Authentication schemas.
"""
from typing import Optional
from pydantic import BaseModel, EmailStr, model_validator


class RegisterRequest(BaseModel):
    """User registration request."""
    email: EmailStr
    password: str
    full_name: str
    phone: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "email": "agent@realty.example",
                "password": "securepassword123",
                "full_name": "Jane Smith"
            }
        }


class TokenResponse(BaseModel):
    """Token response after login."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds


class RefreshRequest(BaseModel):
    """Refresh token request."""
    refresh_token: str


class AccessTokenResponse(BaseModel):
    """New access token response."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class ChangePasswordRequest(BaseModel):
    """Change password for logged-in user."""
    current_password: str
    new_password: str
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self
