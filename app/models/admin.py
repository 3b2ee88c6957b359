from pydantic import BaseModel, Field, field_validator


class AdminLogin(BaseModel):
    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        if "@" not in v:
            raise ValueError("Email must contain '@'")
        return v.strip().lower()


class Admin(BaseModel):
    """Authenticated privileged actor, decoded from a bearer token"""
    email: str
    role: str = "admin"
