import sys

from multipay.config import SamaSettings
from multipay.exceptions import InvalidConfigurationException
from multipay.logging_config import setup_logging

# Healthcheck: validate that every Sama setting the driver needs is present.
# Exit code 0 prints "ok", 1 lists what is missing on stderr.

_ENV_NAMES = {
    "callback_url": "SAMA_CALLBACK_URL",
    "api_purchase_url": "SAMA_API_PURCHASE_URL",
    "api_verification_url": "SAMA_API_VERIFICATION_URL",
    "auth_token": "SAMA_AUTH_TOKEN",
    "merchant_id": "SAMA_MERCHANT_ID",
}


def main() -> int:
    try:
        settings = SamaSettings.from_env()
    except InvalidConfigurationException as e:
        print(str(e), file=sys.stderr)
        return 1

    missing = settings.missing_fields()
    if missing:
        print("missing " + ", ".join(_ENV_NAMES[name] for name in missing), file=sys.stderr)
        return 1

    print("ok")
    return 0


if __name__ == "__main__":
    setup_logging()
    raise SystemExit(main())
