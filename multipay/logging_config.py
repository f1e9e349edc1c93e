from __future__ import annotations

import json
import logging
import logging.config
import os
import re
from typing import Any, Dict


# ================= Sensitive Data Masking ================= #
# Authorization: Api-Key <token>
_API_KEY_RE = re.compile(r"(Authorization\s*[:=]\s*[\"']?Api-Key\s+)([A-Za-z0-9._-]+)", re.IGNORECASE)
# "token": "...", auth_token=..., "api": "..." inside free text
_SECRET_KV_RE = re.compile(
    r"((?:auth_?token|token|api|merchant_?id)[\"']?\s*[:=]\s*[\"']?)([A-Za-z0-9._-]+)",
    re.IGNORECASE,
)
# Iranian mobile numbers: 09xxxxxxxxx or +989xxxxxxxxx
_MOBILE_RE = re.compile(r"(?<!\d)((?:\+98|0098|0)9\d{2})\d{5}(\d{2})(?!\d)")

_SECRET_KEYS = {"token", "auth_token", "authtoken", "api", "merchant_id", "merchantid", "authorization"}
_PHONE_KEYS = {"mobile", "buyer_phone", "phone"}


def _mask_tail(val: Any, keep: int = 4) -> Any:
    if not isinstance(val, str):
        return "[REDACTED]" if val is not None else val
    if len(val) <= keep:
        return "[REDACTED]"
    return "***" + val[-keep:]


def _sanitize_str(s: str) -> str:
    if not isinstance(s, str) or not s:
        return s
    s = _API_KEY_RE.sub(lambda m: m.group(1) + "[REDACTED]", s)
    s = _SECRET_KV_RE.sub(lambda m: m.group(1) + "[REDACTED]", s)
    s = _MOBILE_RE.sub(lambda m: m.group(1) + "*****" + m.group(2), s)
    return s


def _sanitize_obj(obj: Any) -> Any:
    if isinstance(obj, dict):
        out: Dict[Any, Any] = {}
        for k, v in obj.items():
            lk = str(k).lower()
            if lk in _SECRET_KEYS:
                out[k] = _mask_tail(v)
            elif lk in _PHONE_KEYS and isinstance(v, str):
                out[k] = _sanitize_str(v)
            else:
                out[k] = _sanitize_obj(v)
        return out
    if isinstance(obj, (list, tuple)):
        t = type(obj)
        return t(_sanitize_obj(v) for v in obj)
    if isinstance(obj, str):
        return _sanitize_str(obj)
    return obj


class SensitiveDataFilter(logging.Filter):
    """Masks gateway credentials and buyer phone numbers in log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if isinstance(record.msg, str):
            record.msg = _sanitize_str(record.msg)
        if record.args:
            if isinstance(record.args, tuple):
                record.args = tuple(_sanitize_obj(a) for a in record.args)
            elif isinstance(record.args, dict):
                record.args = _sanitize_obj(record.args)
        if hasattr(record, "extra") and isinstance(record.extra, dict):
            record.extra = _sanitize_obj(record.extra)
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "level": record.levelname,
            "time": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if hasattr(record, "extra") and isinstance(record.extra, dict):
            payload.update(record.extra)
        payload = _sanitize_obj(payload)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _bool(val: str | None, default: bool) -> bool:
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "on"}


def setup_logging() -> None:
    """Configure logging for the payment drivers.

    ENV:
      - APP_ENV: production|staging|development (default: production)
      - LOG_LEVEL: DEBUG|INFO|WARNING|ERROR (default: INFO in prod, DEBUG otherwise)
      - LOG_FORMAT: json|text (default: json in prod, text otherwise)
      - LOG_TO_FILE: 1/0 (default: 0)
      - LOG_FILE_PATH: path to log file (default: ./logs/payments.log)
    """
    app_env = os.getenv("APP_ENV", "production").lower()
    default_level = "INFO" if app_env == "production" else "DEBUG"
    log_level = os.getenv("LOG_LEVEL", default_level).upper()
    log_format = os.getenv("LOG_FORMAT", "json" if app_env == "production" else "text").lower()
    formatter = "json" if log_format == "json" else "plain"

    log_file_path = os.getenv("LOG_FILE_PATH", os.path.join(os.getcwd(), "logs", "payments.log"))
    log_to_file = _bool(os.getenv("LOG_TO_FILE"), False)

    handlers: Dict[str, Dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": log_level,
            "stream": "ext://sys.stdout",
            "formatter": formatter,
            "filters": ["sensitive"],
        }
    }

    if log_to_file:
        log_dir = os.path.dirname(log_file_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": log_level,
            "filename": log_file_path,
            "maxBytes": 5 * 1024 * 1024,  # 5MB
            "backupCount": 3,
            "encoding": "utf-8",
            "delay": True,
            "formatter": formatter,
            "filters": ["sensitive"],
        }

    httpx_level = "WARNING" if app_env == "production" else "INFO"

    config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"sensitive": {"()": SensitiveDataFilter}},
        "formatters": {
            "json": {"()": JsonFormatter},
            "plain": {"format": "%(asctime)s %(levelname)s [%(name)s] %(message)s"},
        },
        "handlers": handlers,
        "root": {
            "level": log_level,
            "handlers": list(handlers.keys()),
        },
        "loggers": {
            "multipay": {"level": log_level},
            # httpx logs full request lines at INFO
            "httpx": {"level": httpx_level},
            "httpcore": {"level": "WARNING"},
        },
    }

    logging.config.dictConfig(config)

    logging.getLogger(__name__).info(
        "logging configured",
        extra={
            "extra": {
                "env": app_env,
                "level": log_level,
                "format": log_format,
                "to_file": log_to_file,
                "file": log_file_path if log_to_file else None,
            }
        },
    )
