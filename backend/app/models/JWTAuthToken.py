from sqlmodel import SQLModel, Field
from datetime import datetime

class CredentialPair(SQLModel):
    access_token: str # JWT Token
    refresh_token: str # JWT Token, also recorded in the issued refresh set
    access_token_max_age: int # Access token lifetime in minutes
    access_expires_at: datetime

class AccessClaims(SQLModel):
    id: int # User ID
    username: str
    name: str

class IssuedRefreshToken(SQLModel, table=True):
    __tablename__ = "refresh_tokens"

    token: str = Field(primary_key=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
