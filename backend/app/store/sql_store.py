from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..core.database import create_db_and_tables
from ..models.JWTAuthToken import IssuedRefreshToken
from ..models.User import User
from .base import TokenStore


class SQLModelStore(TokenStore):
    """
    Users and issued refresh tokens as SQLModel tables.
    """

    def __init__(self, engine):
        self.engine = engine
        create_db_and_tables(engine)

    def get_user(self, user_id: int) -> User | None:
        with Session(self.engine) as session:
            return session.get(User, user_id)

    def get_user_by_username(self, username: str) -> User | None:
        with Session(self.engine) as session:
            statement = select(User).where(User.username == username)
            return session.exec(statement).first()

    def add_user(self, user: User) -> User:
        with Session(self.engine) as session:
            session.add(user)
            session.commit()
            session.refresh(user)
            return user

    def add_refresh_token(self, token: str) -> None:
        with Session(self.engine) as session:
            session.add(IssuedRefreshToken(token=token))
            try:
                session.commit()
            except IntegrityError:
                # Already present, the set semantics are kept
                session.rollback()

    def remove_refresh_token(self, token: str) -> bool:
        # A single DELETE so that only one concurrent caller sees rowcount == 1
        with self.engine.begin() as conn:
            result = conn.execute(delete(IssuedRefreshToken).where(IssuedRefreshToken.token == token))
            return result.rowcount == 1

    def has_refresh_token(self, token: str) -> bool:
        with Session(self.engine) as session:
            return session.get(IssuedRefreshToken, token) is not None

    def refresh_tokens(self) -> list[str]:
        with Session(self.engine) as session:
            return list(session.exec(select(IssuedRefreshToken.token)).all())
