"""
Seed the warehouse capacity ledger and, optionally, an admin user.

Rows are created only for warehouses missing from warehouse_capacity, using the
nominal capacities from WAREHOUSE_NOMINAL_CAPACITY with every bin available.
Existing rows are left untouched so live bins_used values are never reset.
"""

from __future__ import annotations

import argparse

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import parse_capacity_map, settings
from app.db.session import SessionLocal
from app.models.users import User
from app.models.warehouse_capacity import WarehouseCapacity


def _seed_ledger(db: Session) -> list[str]:
    created: list[str] = []
    for name, bins in parse_capacity_map(settings.WAREHOUSE_NOMINAL_CAPACITY).items():
        if db.get(WarehouseCapacity, name) is not None:
            continue
        db.add(
            WarehouseCapacity(
                warehouse_name=name,
                total_capacity=bins,
                bins_used=0,
                available_bins=bins,
            )
        )
        created.append(name)
    return created


def _ensure_admin(db: Session, email: str, username: str) -> bool:
    email = email.strip().lower()
    user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if user is not None:
        if (user.role or "").strip().lower() != "admin":
            user.role = "admin"
        return False
    db.add(User(email=email, username=username, role="admin", is_active=True))
    return True


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Idempotent seed of default warehouse capacity rows."
    )
    parser.add_argument(
        "--admin-email",
        default="",
        help="Create (or promote) a user with the ADMIN role for capacity history access.",
    )
    parser.add_argument(
        "--admin-username",
        default="admin",
        help="Username for a newly created admin user.",
    )
    args = parser.parse_args()

    db = SessionLocal()
    try:
        created = _seed_ledger(db)
        admin_created = False
        if args.admin_email.strip():
            admin_created = _ensure_admin(db, args.admin_email, args.admin_username)
        db.commit()
        print(f"warehouse_capacity: inserted={len(created)} {', '.join(created) or '-'}")
        if args.admin_email.strip():
            print(f"users: admin {'created' if admin_created else 'already present'}")
        print("Seed completed.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
