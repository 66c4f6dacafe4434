# apiapp/services/auth.py
from abc import ABC, abstractmethod
from typing import Optional

from loguru import logger

from apiapp.core.config import Settings, settings as default_settings
from apiapp.core.errors import InvalidCredentials, InvalidRefreshToken
from apiapp.core.security import create_access_token, create_refresh_token, verify_password
from apiapp.repositories.base import AuthRepository
from apiapp.schemas.auth import AuthRequest, OAuthResponse, RefreshRequest


class AuthService(ABC):
    """驗證 / 授權服務介面：登入、行動裝置登入、refresh token 兌換。"""

    @abstractmethod
    async def login(self, model: AuthRequest) -> Optional[OAuthResponse]:
        """帳密正確回傳 token 組合；錯誤回傳 None。"""

    @abstractmethod
    async def mobile(self, model: AuthRequest) -> OAuthResponse:
        """行動裝置登入；帳密錯誤時拋 InvalidCredentials。"""

    @abstractmethod
    async def refresh_token(self, model: RefreshRequest) -> Optional[OAuthResponse]:
        """以有效的 refresh token 換新的 token 組合；無效回傳 None。"""

    @abstractmethod
    async def generate_oauth_data(self, username: str, user_role: str) -> Optional[OAuthResponse]:
        ...

    @abstractmethod
    def generate_jwt_token(self, username: str, role: str) -> str:
        ...

    @abstractmethod
    def generate_refresh_token(self) -> str:
        ...

    @abstractmethod
    async def verify_refresh_token(self, username: str, refresh_token: str) -> str:
        """回傳使用者角色；token 不屬於該使用者時拋 InvalidRefreshToken。"""

    @abstractmethod
    async def verify_user(self, username: str, password: str) -> str:
        """回傳使用者角色；帳密錯誤時拋 InvalidCredentials。"""


class JwtAuthService(AuthService):
    """
    預設實作：
      - access token：HS256 JWT（python-jose）
      - refresh token：opaque 亂數字串，存在 Employee.refresh_token
      - 每次 refresh 都換發新的 refresh token（舊的立即失效）
    """

    def __init__(self, repository: AuthRepository, settings: Settings = default_settings):
        self.repository = repository
        self.settings = settings

    async def login(self, model: AuthRequest) -> Optional[OAuthResponse]:
        try:
            role = await self.verify_user(model.username or "", model.password or "")
        except InvalidCredentials:
            logger.warning("Login failed for user '{}'", model.username)
            return None
        logger.info("Login succeeded for user '{}'", model.username)
        return await self.generate_oauth_data(model.username, role)

    async def mobile(self, model: AuthRequest) -> OAuthResponse:
        role = await self.verify_user(model.username or "", model.password or "")
        data = await self._issue(
            model.username, role, self.settings.MOBILE_ACCESS_TOKEN_EXPIRE_MINUTES
        )
        if data is None:
            raise InvalidCredentials()
        logger.info("Mobile login succeeded for user '{}'", model.username)
        return data

    async def refresh_token(self, model: RefreshRequest) -> Optional[OAuthResponse]:
        try:
            role = await self.verify_refresh_token(model.username or "", model.refresh_token or "")
        except InvalidRefreshToken:
            logger.warning("Refresh rejected for user '{}'", model.username)
            return None
        logger.info("Refresh token rotated for user '{}'", model.username)
        return await self.generate_oauth_data(model.username, role)

    async def generate_oauth_data(self, username: str, user_role: str) -> Optional[OAuthResponse]:
        return await self._issue(username, user_role, self.settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    def generate_jwt_token(self, username: str, role: str, expires_minutes: Optional[int] = None) -> str:
        return create_access_token(
            username,
            role,
            scopes=self.settings.scopes_for(role),
            expires_minutes=expires_minutes,
            settings=self.settings,
        )

    def generate_refresh_token(self) -> str:
        return create_refresh_token(settings=self.settings)

    async def verify_refresh_token(self, username: str, refresh_token: str) -> str:
        if not username or not refresh_token:
            raise InvalidRefreshToken()
        employee = await self.repository.retrieve(username, refresh_token)
        if employee is None:
            raise InvalidRefreshToken()
        return employee.role

    async def verify_user(self, username: str, password: str) -> str:
        if not username or not password:
            raise InvalidCredentials()
        employee = await self.repository.retrieve(username)
        # 統一訊息避免帳號探測
        if employee is None or not verify_password(password, employee.password_hash):
            raise InvalidCredentials()
        return employee.role

    async def _issue(self, username: Optional[str], role: str, expires_minutes: int) -> Optional[OAuthResponse]:
        if not username:
            return None
        access_token = self.generate_jwt_token(username, role, expires_minutes=expires_minutes)
        refresh_token = self.generate_refresh_token()
        await self.repository.store_refresh_token(username, refresh_token)
        return OAuthResponse(
            access_token=access_token,
            token_type="Bearer",
            expires_in=expires_minutes * 60,
            refresh_token=refresh_token,
            role=role,
            scopes=self.settings.scopes_for(role),
        )
