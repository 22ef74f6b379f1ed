#!/usr/bin/env python3
"""
Maintenance script: reset streaks of users who never completed a task.
Run this after importing legacy data that carried streaks without completions.
"""

import argparse
import sys

from studybuddy.config import Config
from studybuddy.database import Database
from studybuddy.services.streak_service import StreakService


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--database-url", help="Database URL (default: STUDYBUDDY_DATABASE_URL)")
    parser.add_argument("--dry-run", action="store_true", help="Only list affected users")
    args = parser.parse_args(argv)

    config = Config.from_env()
    url = args.database_url or config.database_url
    print(f"Resetting idle streaks in: {url}")

    with Database(url) as database:
        db = database.session()
        try:
            reset_ids = StreakService(db, config).reset_idle_streaks(dry_run=args.dry_run)
        except Exception as e:
            print(f"\n✗ Streak reset failed: {e}")
            return 1
        finally:
            db.close()

    for user_id in reset_ids:
        print(f"  - {'Would reset' if args.dry_run else 'Reset'} streak for user {user_id}")

    if reset_ids:
        print(f"\n✓ {len(reset_ids)} user(s) {'to reset' if args.dry_run else 'reset'}")
    else:
        print("\n✓ No streaks to reset")
    return 0


if __name__ == "__main__":
    sys.exit(main())
