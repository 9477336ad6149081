# make_admin.py
# Usage: ADMIN_EMAIL=... ADMIN_PASSWORD=... python make_admin.py

import os

from sqlalchemy.exc import IntegrityError

from app import create_app
from extensions import db
from models import AppRole, Profile, User

DEFAULT_EMAIL = "admin@cesagritech.com"


def make_admin(email=None, password=None):
    email = (email or os.getenv("ADMIN_EMAIL", DEFAULT_EMAIL)).strip().lower()
    password = password or os.getenv("ADMIN_PASSWORD")

    app = create_app()
    with app.app_context():
        user = User.query.filter_by(email=email).first()

        if user:
            print(f"Found user id={user.id}, email={user.email}. Granting admin role...")
        else:
            if not password:
                raise SystemExit("No such user; set ADMIN_PASSWORD to create one.")
            print(f"No user with email {email} found, creating a new one.")
            user = User(email=email)
            user.set_password(password)
            user.profile = Profile(email=email, full_name="CES Administrator")
            user.grant_role(AppRole.CLIENT)
            db.session.add(user)

        user.grant_role(AppRole.ADMIN)
        try:
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            raise RuntimeError(f"Could not grant admin role to {email}") from e

        print(f"User (id={user.id}, email={email}) is now admin. Roles: {', '.join(user.role_names)}")


if __name__ == "__main__":
    make_admin()
