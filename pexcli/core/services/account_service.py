"""Core service for credential and configuration commands."""

import logging
import os
from typing import Any, Dict, Optional

from pexcli.domain.errors import ConfigurationError
from pexcli.domain.models.common import empty_meta, wrap_ok
from pexcli.infrastructure.config import settings

logger = logging.getLogger(__name__)

TOKEN_KEYS = ("token", "api_key")


def build_auth_status(token_info: settings.TokenInfo) -> Dict[str, Any]:
    """Describes the active token without revealing it."""
    if token_info.source == settings.TOKEN_SOURCE_ENV:
        details: Dict[str, Any] = {"var": token_info.env_var, "set": True}
    elif token_info.present:
        details = {"path": str(settings.config_path()), "profile": None}
    else:
        details = {"reason": "no token found"}
    return {"present": token_info.present, "source": token_info.source, "details": details}


class AccountService:
    """Reads and persists the API token and config-file keys."""

    def login(self, token: Optional[str] = None) -> Dict[str, Any]:
        message = "token saved"
        if not token:
            for var in settings.TOKEN_ENV_VARS:
                token = os.environ.get(var)
                if token:
                    message = f"token saved from env {var}"
                    break
        if not token:
            raise ConfigurationError("token not provided; pass TOKEN or set env PEXELS_TOKEN")
        settings.set_config("token", token)
        settings.set_config("token_source", settings.TOKEN_SOURCE_CONFIG)
        settings.save_configuration()
        logger.info("API token stored in config file")
        return wrap_ok({"status": "ok", "message": message}, empty_meta())

    def status(self) -> Dict[str, Any]:
        return wrap_ok(build_auth_status(settings.resolve_token()), empty_meta())

    def token_source(self) -> Dict[str, Any]:
        return wrap_ok({"source": settings.resolve_token().source}, empty_meta())

    def logout(self) -> Dict[str, Any]:
        settings.set_config("token", None)
        settings.set_config("token_source", settings.TOKEN_SOURCE_NONE)
        settings.save_configuration()
        logger.info("API token removed from config file")
        return wrap_ok({"status": "logged out"}, empty_meta())

    def config_set(self, key: str, value: str) -> Dict[str, Any]:
        if key not in TOKEN_KEYS:
            raise ConfigurationError(f"unsupported key: {key}")
        settings.set_config("token", value)
        settings.save_configuration()
        return wrap_ok({"status": "ok"}, empty_meta())

    def config_get(self, key: str) -> str:
        """Raw value of a config key; unknown keys read as empty."""
        if key not in TOKEN_KEYS:
            return ""
        token = settings.get_config("token")
        return str(token) if token else ""

    def config_path(self) -> str:
        return str(settings.config_path())
