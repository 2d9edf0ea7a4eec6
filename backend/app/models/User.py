from pydantic import StrictInt
from sqlmodel import Field, SQLModel

# ==========================================
# SQLModel (Database Entity + Base Pydantic)
# ==========================================
class User(SQLModel, table=True):
    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    username: str = Field(unique=True, index=True, nullable=False)
    # Salted argon2 hash, never the plaintext
    password: str = Field(nullable=False)
    name: str = Field(default="", nullable=False)

# ==========================================
# Pydantic Models (DTOs)
# ==========================================

# Properties to receive via API on login
class LoginRequest(SQLModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    access_token_max_age: StrictInt | None = Field(default=None, alias="accessTokenMaxAge")

# Properties to receive via API on refresh
class RefreshRequest(SQLModel):
    access_token_max_age: StrictInt | None = Field(default=None, alias="accessTokenMaxAge")

# Properties to return via API
class UserResponse(SQLModel):
    id: int
    username: str
    name: str
