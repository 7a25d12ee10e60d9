# portal/create_admin.py
# Seed or reset an admin account:
#   python -m portal.create_admin <username> <name> <password>
import sys

from werkzeug.security import generate_password_hash

from portal.database import SessionLocal, create_tables
from portal.faculty.models import User, ROLE_ADMIN


def create_admin(db, username: str, name: str, password: str) -> User:
    """Create the admin, or promote and reset the password of an existing user."""
    user = db.query(User).filter(User.username == username).first()
    if user is None:
        user = User(username=username)
        db.add(user)

    user.name = name
    user.role = ROLE_ADMIN
    user.password_hash = generate_password_hash(password)
    db.commit()
    db.refresh(user)
    return user


def main(argv=None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 3 or not all(a.strip() for a in args):
        print("usage: python -m portal.create_admin <username> <name> <password>")
        return 2

    username, name, password = (a.strip() for a in args)
    create_tables()
    db = SessionLocal()
    try:
        user = create_admin(db, username, name, password)
        print("Admin ready:", user.username)
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
