import os


def get_settings_module() -> str:
    # APP_ENV picks the settings module; development is the default
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "employee_portal.config.production"

    if env in {"test", "testing"}:
        return "employee_portal.config.testing"

    return "employee_portal.config.development"
