# scripts/make_admin.py
# Usage: python -m scripts.make_admin <email>
import sys
from typing import Optional

from sqlmodel import Session, select

from storefront.database import engine
from storefront.models.user import User


def make_admin(email: str) -> Optional[User]:
    with Session(engine) as session:
        user = session.exec(select(User).where(User.email == email.lower())).first()
        if not user:
            return None

        user.role = "admin"
        session.add(user)
        session.commit()
        session.refresh(user)
        return user


def main(argv):
    if len(argv) != 2:
        print("Usage: python -m scripts.make_admin <email>")
        return 1

    user = make_admin(argv[1])
    if not user:
        print(f"User not found: {argv[1]}")
        return 1

    print(f"Updated user to admin: id={user.id} email={user.email} role={user.role}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
