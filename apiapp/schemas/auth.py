# apiapp/schemas/auth.py
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class AuthRequest(BaseModel):
    """登入用的帳密；也接受 PascalCase 的 Username / Password。"""

    model_config = ConfigDict(populate_by_name=True)

    username: Optional[str] = Field(None, validation_alias=AliasChoices("username", "Username"))
    password: Optional[str] = Field(None, validation_alias=AliasChoices("password", "Password"))


class RefreshRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: Optional[str] = Field(None, validation_alias=AliasChoices("username", "Username"))
    refresh_token: Optional[str] = Field(
        None, validation_alias=AliasChoices("refresh_token", "RefreshToken", "refreshToken")
    )


class OAuthResponse(BaseModel):
    """OAuth2 風格的 token 組合；欄位名稱沿用 OAuth2 慣例。"""

    access_token: Optional[str] = None
    token_type: Optional[str] = None
    expires_in: Optional[int] = None  # 秒
    refresh_token: Optional[str] = None
    role: Optional[str] = None
    scopes: Optional[List[str]] = None
