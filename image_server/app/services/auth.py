import secrets
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from image_server.app.context import AppContext, get_context
from image_server.app.exceptions import AuthError
from image_server.config import Settings
from image_server.logger_config import setup_logger

logger = setup_logger()

basic_auth = HTTPBasic(auto_error=False)


@dataclass(frozen=True)
class AuthResult:
    ok: bool
    reason: Optional[str] = None


def check_credentials(credentials: Optional[HTTPBasicCredentials], settings: Settings) -> AuthResult:
    """Compare Basic credentials against the configured uploader account."""
    if not settings.upload_user or not settings.upload_pass:
        # No account configured means nobody may upload
        return AuthResult(ok=False, reason="Upload credentials are not configured")

    if credentials is None:
        return AuthResult(ok=False, reason="Missing credentials")

    user_ok = secrets.compare_digest(credentials.username.encode("utf-8"), settings.upload_user.encode("utf-8"))
    pass_ok = secrets.compare_digest(credentials.password.encode("utf-8"), settings.upload_pass.encode("utf-8"))
    if not (user_ok and pass_ok):
        return AuthResult(ok=False, reason="Invalid credentials")
    return AuthResult(ok=True)


async def require_uploader(
    credentials: Optional[HTTPBasicCredentials] = Depends(basic_auth),
    context: AppContext = Depends(get_context),
) -> str:
    result = check_credentials(credentials, context.settings)
    if not result.ok:
        logger.info(f"Upload rejected: {result.reason}")
        raise AuthError()
    return credentials.username
