import logging

from ..models.User import User
from ..store.base import TokenStore
from .security import get_password_hash

logger = logging.getLogger(__name__)

DEMO_USERS = [
    {"id": 1, "username": "user1", "password": "password1", "name": "User One"},
    {"id": 2, "username": "user2", "password": "password2", "name": "User Two"},
]

def init_db(store: TokenStore, users: list[dict] = DEMO_USERS):
    for record in users:
        if store.get_user_by_username(record["username"]):
            logger.debug("User %s already exists.", record["username"])
            continue

        logger.info("Creating demo user: %s", record["username"])
        store.add_user(
            User(
                id=record["id"],
                username=record["username"],
                password=get_password_hash(record["password"]),
                name=record["name"],
            )
        )
