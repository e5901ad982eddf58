"""Merchant notifications management CLI.

Database schema management plus the periodic maintenance jobs.

Usage:
    python src/manage.py setup-db                     # Create all tables
    python src/manage.py drop-db                      # Drop all tables
    python src/manage.py cleanup-otps                 # Purge expired OTPs
    python src/manage.py process-pending --limit 50   # Re-deliver pending notifications
"""

import argparse
import sys


def _domain():
    from notifications.domain import notifications

    print("Initializing notifications domain...")
    notifications.init()
    return notifications


def setup_database():
    """Create the database schema."""
    from notifications.utils.db import setup_db

    domain = _domain()
    print("Creating notifications database schema...")
    setup_db(domain)
    print("Done.")


def drop_database():
    """Drop the database schema."""
    from notifications.utils.db import drop_db

    domain = _domain()
    print("Dropping notifications database schema...")
    drop_db(domain)
    print("Done.")


def cleanup_otps(retention_hours=None):
    """Delete OTPs whose expiry is older than the retention window."""
    from notifications.otp.maintenance import CleanupExpiredOTPs

    domain = _domain()
    with domain.domain_context():
        deleted = domain.process(CleanupExpiredOTPs(retention_hours=retention_hours), asynchronous=False)
    print(f"Deleted {deleted} expired OTP(s).")


def process_pending(limit):
    """Re-deliver notifications left pending."""
    from notifications.notification.reconciliation import ProcessPendingNotifications

    domain = _domain()
    with domain.domain_context():
        processed = domain.process(ProcessPendingNotifications(limit=limit), asynchronous=False)
    print(f"Processed {processed} pending notification(s).")


def main():
    parser = argparse.ArgumentParser(description="Merchant notifications management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    cleanup_parser = subparsers.add_parser("cleanup-otps", help="Delete expired OTPs past the retention window")
    cleanup_parser.add_argument("--retention-hours", type=int, default=None)

    pending_parser = subparsers.add_parser("process-pending", help="Re-deliver pending notifications")
    pending_parser.add_argument("--limit", type=int, default=100)

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "cleanup-otps":
        cleanup_otps(args.retention_hours)
    elif args.command == "process-pending":
        process_pending(args.limit)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
