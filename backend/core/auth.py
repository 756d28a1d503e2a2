import uuid
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from fastapi_users import BaseUserManager, FastAPIUsers, UUIDIDMixin, exceptions
from fastapi_users.authentication import AuthenticationBackend, BearerTransport, JWTStrategy
from fastapi_users.db import SQLAlchemyUserDatabase
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.log import get_logger
from db.database import get_async_session
from db.users import User

logger = get_logger("auth")


class InventoryUserDatabase(SQLAlchemyUserDatabase):
    async def get_by_username(self, username: str) -> Optional[User]:
        statement = select(self.user_table).where(
            func.lower(self.user_table.username) == func.lower(username)
        )
        return await self._get_user(statement)


async def get_user_db(session: AsyncSession = Depends(get_async_session)):
    yield InventoryUserDatabase(session, User)


class UserManager(UUIDIDMixin, BaseUserManager[User, uuid.UUID]):
    reset_password_token_secret = settings.auth_secret
    verification_token_secret = settings.auth_secret

    async def authenticate(self, credentials: OAuth2PasswordRequestForm) -> Optional[User]:
        """Login accepts either the email address or the username."""
        identifier = (credentials.username or "").strip()
        if "@" in identifier:
            return await super().authenticate(credentials)

        user = await self.user_db.get_by_username(identifier)
        if user is None:
            # Run the hasher anyway so unknown usernames take as long as wrong passwords
            self.password_helper.hash(credentials.password)
            return None

        verified, updated_password_hash = self.password_helper.verify_and_update(
            credentials.password, user.hashed_password
        )
        if not verified:
            return None
        if updated_password_hash is not None:
            await self.user_db.update(user, {"hashed_password": updated_password_hash})
        return user

    async def update(self, user_update, user: User, safe: bool = False, request: Optional[Request] = None) -> User:
        username = getattr(user_update, "username", None)
        if username is not None and username.lower() != (user.username or "").lower():
            other = await self.user_db.get_by_username(username)
            if other is not None and other.id != user.id:
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists")
        return await super().update(user_update, user, safe=safe, request=request)

    async def on_after_register(self, user: User, request: Optional[Request] = None):
        logger.info("User %s (%s) created", user.username, user.id)

    async def on_after_login(self, user: User, request: Optional[Request] = None, response=None):
        logger.info("User %s logged in", user.username)

    async def on_before_delete(self, user: User, request: Optional[Request] = None):
        logger.info("Deleting user %s (%s)", user.username, user.id)


async def get_user_manager(user_db: InventoryUserDatabase = Depends(get_user_db)):
    yield UserManager(user_db)


bearer_transport = BearerTransport(tokenUrl="auth/jwt/login")


def get_jwt_strategy() -> JWTStrategy:
    return JWTStrategy(secret=settings.auth_secret, lifetime_seconds=settings.auth_token_lifetime_seconds)


auth_backend = AuthenticationBackend(
    name="jwt",
    transport=bearer_transport,
    get_strategy=get_jwt_strategy,
)

fastapi_users = FastAPIUsers[User, uuid.UUID](get_user_manager, [auth_backend])

current_active_user = fastapi_users.current_user(active=True)
current_active_superuser = fastapi_users.current_user(active=True, superuser=True)


__all__ = [
    "UserManager",
    "get_user_manager",
    "auth_backend",
    "fastapi_users",
    "current_active_user",
    "current_active_superuser",
    "exceptions",
]
