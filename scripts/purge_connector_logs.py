#!/usr/bin/env python3
from __future__ import annotations

import argparse
from datetime import datetime, timedelta

from genericopenai import create_app
from genericopenai.extensions import db
from genericopenai.models import ConnectorLog


def purge_connector_logs(days: int) -> int:
    cutoff = datetime.utcnow() - timedelta(days=days)
    deleted = ConnectorLog.query.filter(ConnectorLog.timestamp < cutoff).delete(synchronize_session=False)
    db.session.commit()
    return deleted


def main() -> None:
    parser = argparse.ArgumentParser(description="Purge old connector request logs")
    parser.add_argument("--days", type=int, default=30, help="Delete rows older than this many days")
    args = parser.parse_args()

    if args.days < 0:
        raise SystemExit("--days must be >= 0")

    app = create_app()
    with app.app_context():
        deleted = purge_connector_logs(args.days)

    print(f"Purged {deleted} connector log(s) older than {args.days} day(s).")


if __name__ == "__main__":
    main()
