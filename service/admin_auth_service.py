# service/admin_auth_service.py
import hmac
from typing import MutableMapping, Any
from config.settings import Settings, settings as default_settings
from util.enums import ErrorMessage
from util.errors import AppError
import logging

logger = logging.getLogger(__name__)

SESSION_FLAG = "isAdmin"


class AdminAuthService:
    """
    Password login that marks the cookie session as admin.
    """

    def __init__(self, config: Settings = default_settings) -> None:
        self._config = config

    def _password(self) -> str:
        password = self._config.ADMIN_PASSWORD
        if not password:
            logger.critical("admin.password.missing")
            raise AppError.of(ErrorMessage.ADMIN_NOT_CONFIGURED)
        return password

    def login(self, session: MutableMapping[str, Any], password: str) -> None:
        expected = self._password()
        if not hmac.compare_digest(password.encode("utf-8"), expected.encode("utf-8")):
            logger.warning("admin.login.invalid")
            raise AppError.of(ErrorMessage.INVALID_PASSWORD)
        session[SESSION_FLAG] = True
        logger.info("admin.login.ok")

    def require(self, session: MutableMapping[str, Any]) -> None:
        self._password()
        if not session.get(SESSION_FLAG):
            raise AppError.of(ErrorMessage.UNAUTHORIZED)
