# Scripts/change_password.py
# Usage:
#   python Scripts/change_password.py alice n3w-pass

import argparse

from sprintboard.core.config import settings
from sprintboard.core.errors import NotFound, SprintboardError
from sprintboard.crud import crud_user
from sprintboard.db.session import Database


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("username")
    ap.add_argument("new_password")
    args = ap.parse_args()

    database = Database(settings)
    db = database.session()
    try:
        user = crud_user.set_password(db, args.username.strip(), args.new_password)
    except NotFound:
        existing = ", ".join(u.username for u in crud_user.list_users(db))
        raise SystemExit(f'User "{args.username}" not found. Existing users: {existing}')
    except SprintboardError as exc:
        raise SystemExit(f"Error: {exc.detail}")
    finally:
        db.close()
        database.dispose()

    print(f'Password updated for "{user.username}".')


if __name__ == "__main__":
    main()
