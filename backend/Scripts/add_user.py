# Scripts/add_user.py
# Usage:
#   python Scripts/add_user.py alice s3cret
#   python Scripts/add_user.py coachkim s3cret coach
#   python Scripts/add_user.py bob s3cret player Blue

import argparse

from sprintboard.core.config import settings
from sprintboard.core.errors import SprintboardError
from sprintboard.crud import crud_user
from sprintboard.db.init_db import init_db
from sprintboard.db.session import Database


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("username")
    ap.add_argument("password")
    ap.add_argument("role", nargs="?", default="player", help="player | coach")
    ap.add_argument("team", nargs="?", default=None, help="Blue | White (omit for bench)")
    args = ap.parse_args()

    database = Database(settings)
    init_db(database)
    db = database.session()
    try:
        user = crud_user.create_user(db, args.username, args.password, role=args.role, team=args.team)
    except SprintboardError as exc:
        raise SystemExit(f"Error: {exc.detail}")
    finally:
        db.close()
        database.dispose()

    print(f"Added: {user.username} (role={user.role}, team={user.team or '-'})")


if __name__ == "__main__":
    main()
