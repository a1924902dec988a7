"""
Seed script for the City Reporter Firestore project.

Usage:
  - Dry run (default): python scripts/seed_db.py
  - Apply to the configured project: python scripts/seed_db.py --apply
  - Only one collection: python scripts/seed_db.py --apply --only offices

Behavior:
  - Loads the sample regional offices and admins bundled with the services.
  - Gets the client via `city_reporter.config.firebase.get_db()`.
  - Offices are always inserted as new documents; admins are upserted by email.

NOTE: Ensure `FIREBASE_CREDENTIALS_PATH` (or Application Default Credentials)
is configured in `.env` before applying.
"""

import argparse

from city_reporter.config.firebase import close_firestore, get_db
from city_reporter.services.identity_service import SAMPLE_ADMINS, IdentityService
from city_reporter.services.office_service import SAMPLE_OFFICES, OfficeService


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--apply", action="store_true", help="Write seed data instead of dry-run")
    parser.add_argument("--only", choices=["offices", "admins"], help="Seed a single collection")
    args = parser.parse_args()

    seed_offices = args.only in (None, "offices")
    seed_admins = args.only in (None, "admins")

    if not args.apply:
        if seed_offices:
            for office in SAMPLE_OFFICES:
                print(f"Preparing: offices/{office['type']} {office['name']}")
        if seed_admins:
            for admin in SAMPLE_ADMINS:
                print(f"Preparing: admins/{admin['email']}")
        print("Dry run complete. Use --apply to write.")
        return

    db = get_db()
    try:
        if seed_offices:
            offices = OfficeService(db).seed_offices()
            print(f"Wrote {len(offices)} offices")
        if seed_admins:
            admins = IdentityService(db).seed_admins()
            print(f"Wrote {len(admins)} admins")
    finally:
        close_firestore()


if __name__ == "__main__":
    main()
