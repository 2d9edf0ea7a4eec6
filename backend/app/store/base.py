from abc import ABC, abstractmethod

from ..models.User import User


class TokenStore(ABC):
    """
    Persistence collaborator for users and the issued refresh set.

    Users are read-only to the token lifecycle; ``add_user`` exists for
    seeding. ``remove_refresh_token`` is a compare-and-remove: it reports
    whether this call was the one that removed the token.
    """

    @abstractmethod
    def get_user(self, user_id: int) -> User | None: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> User | None: ...

    @abstractmethod
    def add_user(self, user: User) -> User: ...

    @abstractmethod
    def add_refresh_token(self, token: str) -> None: ...

    @abstractmethod
    def remove_refresh_token(self, token: str) -> bool: ...

    @abstractmethod
    def has_refresh_token(self, token: str) -> bool: ...

    @abstractmethod
    def refresh_tokens(self) -> list[str]: ...
