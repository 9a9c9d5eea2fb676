#!/usr/bin/env python3
"""Yeni merchant ve API anahtarı üretir. Proje kökünden:
   python3 scripts/create_merchant.py --name "Demo Shop" --email demo@shop.test
   Secret yalnızca bu çıktıda görünür; veritabanında bcrypt hash olarak durur."""
import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from sqlmodel import Session  # noqa: E402

from gateway.core.database import engine, init_db  # noqa: E402
from gateway.services.merchants import create_merchant  # noqa: E402


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a gateway merchant")
    parser.add_argument("--name", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--api-key", default=None, help="Boşsa rastgele üretilir")
    parser.add_argument("--api-secret", default=None, help="Boşsa rastgele üretilir")
    args = parser.parse_args(argv)

    init_db()
    with Session(engine) as db:
        merchant, secret = create_merchant(db, args.name, args.email, args.api_key, args.api_secret)
    print(f"merchant_id: {merchant.id}")
    print(f"api_key:     {merchant.api_key}")
    print(f"api_secret:  {secret}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
