# apiapp/core/security.py
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Optional
from uuid import uuid4

from jose import JWTError, jwt
from passlib.context import CryptContext

from apiapp.core.config import Settings, settings as default_settings

# === Password Hashing ===
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__ident="2b",
    # 若密碼超過 72 bytes，不拋錯
    bcrypt__truncate_error=False,
)


def _sanitize_password(p: str) -> str:
    # bcrypt 只吃前 72 bytes，避免極長密碼在某些環境報錯
    return p[:72] if isinstance(p, str) else p


def hash_password(plain: str) -> str:
    return pwd_context.hash(_sanitize_password(plain))


def verify_password(plain: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(_sanitize_password(plain), password_hash)
    except ValueError:
        # 資料庫內不是合法的 hash（例如手動塞入的明碼）
        return False


# === JWT Helpers ===
def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _exp(minutes: int) -> datetime:
    return _now_utc() + timedelta(minutes=minutes)


def create_access_token(
    username: str,
    role: str,
    scopes: Iterable[str] = (),
    expires_minutes: Optional[int] = None,
    settings: Settings = default_settings,
) -> str:
    """
    簽發 Access Token，claims：
      - sub: username
      - role / scope（空白分隔）
      - type=access, jti, iat, exp, iss, aud
    """
    claims: Dict[str, Any] = {
        "sub": username,
        "role": role,
        "scope": " ".join(scopes),
        "type": "access",
        "jti": str(uuid4()),
        "iat": int(_now_utc().timestamp()),
        "exp": _exp(expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str, settings: Settings = default_settings) -> Dict[str, Any]:
    """
    驗證並解出 Access Token；簽章、exp 一律驗證。
    iss / aud 只在 JWT_VALIDATE_ISSUER / JWT_VALIDATE_AUDIENCE 開啟時驗證。
    token type 不為 access 時拋 JWTError。
    """
    payload = jwt.decode(
        token,
        settings.SECRET_KEY,
        algorithms=[settings.JWT_ALGORITHM],
        audience=settings.JWT_AUDIENCE if settings.JWT_VALIDATE_AUDIENCE else None,
        issuer=settings.JWT_ISSUER if settings.JWT_VALIDATE_ISSUER else None,
        options={
            "verify_aud": settings.JWT_VALIDATE_AUDIENCE,
            "verify_iss": settings.JWT_VALIDATE_ISSUER,
        },
    )
    if payload.get("type") != "access":
        raise JWTError("Invalid token type for this endpoint (need access token).")
    return payload


# === Opaque refresh token ===
def create_refresh_token(nbytes: Optional[int] = None, settings: Settings = default_settings) -> str:
    """URL-safe 亂數字串；不含任何 claims，只能對照資料庫。"""
    return secrets.token_urlsafe(nbytes or settings.REFRESH_TOKEN_BYTES)
