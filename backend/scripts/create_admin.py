"""
Create (or promote) an admin account. Run from backend dir:
  python -m scripts.create_admin admin@example.com 'password' "Store Admin"
"""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.db_transaction import db_transaction
from app.core.security import get_password_hash
from app.models.user import User, RoleEnum


def create_admin(email: str, password: str, display_name: str = "Administrator") -> None:
    email = email.strip().lower()
    with db_transaction() as db:
        user = db.query(User).filter(User.email == email).first()
        if user:
            user.role = RoleEnum.ADMIN
            user.is_active = True
            print(f"Promoted existing user {email} to admin.")
        else:
            db.add(User(
                email=email,
                hashed_password=get_password_hash(password),
                display_name=display_name,
                role=RoleEnum.ADMIN,
                is_active=True,
            ))
            print(f"Admin user {email} created!")


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("usage: python -m scripts.create_admin <email> <password> [display name]", file=sys.stderr)
        sys.exit(2)
    create_admin(sys.argv[1], sys.argv[2], sys.argv[3] if len(sys.argv) > 3 else "Administrator")
