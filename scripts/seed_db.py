from __future__ import annotations

import importlib
import os
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT / "src") not in sys.path:
    sys.path.insert(0, str(REPO_ROOT / "src"))

from dotenv import load_dotenv

from employee_portal.config import get_settings_module
from employee_portal.database.bootstrap import ensure_admin
from employee_portal.database.connection import DBConfig


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    db_config = DBConfig.from_dict(settings.DB_CONFIG)

    email = os.getenv("ADMIN_EMAIL", "admin@example.com")
    password = os.getenv("ADMIN_PASSWORD", "Admin12345")
    user_id = ensure_admin(db_config, email=email, password=password)

    print(
        "OK: Seeded admin -> "
        f"{email} (id={user_id}) on {db_config.user}@{db_config.host}:{db_config.port}/{db_config.database}"
    )


if __name__ == "__main__":
    main()
