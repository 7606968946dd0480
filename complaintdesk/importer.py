# Complaint Desk: seed data importer
# Populates the local store with demo complaints and signs in the first demo user
#
# Usage:  complaintdesk-seed
#     or: python -m complaintdesk.importer

import argparse

from . import config
from .repository import ComplaintRepository
from .seed import DEMO_USERS, demo_users, import_complaints
from .session import SessionStore
from .store import JsonFileStore


def main(argv=None):
    parser = argparse.ArgumentParser(description="Seed the Complaint Desk local store with demo data")
    parser.add_argument("--data-file", default=str(config.DATA_FILE),
                        help="store file to populate (default: %(default)s)")
    parser.add_argument("--force", action="store_true",
                        help="seed even if complaints already exist")
    args = parser.parse_args(argv)

    print("=" * 64)
    print("  Complaint Desk — Seed Data Importer")
    print("=" * 64)
    print(f"  Store: {args.data_file}")

    store = JsonFileStore(args.data_file)
    repo = ComplaintRepository(store)
    existing = repo.list_all()
    if existing and not args.force:
        print(f"\n  SKIP  store already holds {len(existing)} complaint(s); use --force to add more")
        return 0

    users = demo_users()
    print("\n  Demo users:")
    for u in DEMO_USERS:
        print(f"    {u['key']:10s}  {u['email']}")

    print("\n  Importing complaints...")
    inserted = import_complaints(repo, users)
    for i, c in enumerate(inserted, 1):
        print(f"    [{i:2d}/{len(inserted)}] {c.status.value:11s}  {c.id}  {c.title[:48]}")

    SessionStore(store).begin_session(users[DEMO_USERS[0]["key"]])
    print(f"\n  => {len(inserted)} complaints imported; signed in as {DEMO_USERS[0]['email']}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
