"""Create a user in the chat database.

Usage:
    python scripts/create_user.py --email me@example.com --password secret
    python scripts/create_user.py --guest
"""

import argparse

from chatbot.core.config import settings
from chatbot.core.database import create_db_engine, init_db
from chatbot.services.store import ChatStore


def main() -> None:
    parser = argparse.ArgumentParser(description="Create a user in the chat database.")
    parser.add_argument("--email")
    parser.add_argument("--password")
    parser.add_argument("--guest", action="store_true", help="Create a guest user with a generated email")
    args = parser.parse_args()

    if not args.guest and not (args.email and args.password):
        parser.error("--email and --password are required unless --guest is given")

    engine = create_db_engine(settings.database_url)
    init_db(engine)
    store = ChatStore(engine)

    try:
        if args.guest:
            user = store.create_guest_user()
        else:
            existing = store.get_user(args.email)
            if existing:
                print(f"User already exists: id={existing[0].id} email={existing[0].email}")
                return
            user = store.create_user(args.email, args.password)
        print(f"Created user: id={user.id} email={user.email}")
    finally:
        store.close()


if __name__ == "__main__":
    main()
