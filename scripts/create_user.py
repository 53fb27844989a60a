#!/usr/bin/env python3
from __future__ import annotations

import os
from getpass import getpass

from blog.auth.service import AuthService
from blog.infra.db import DEFAULT_DATABASE_URL, Database


def main() -> None:
    db = Database(os.getenv("BLOG_DATABASE_URL", DEFAULT_DATABASE_URL))
    db.init()
    try:
        auth = AuthService(db)

        email = input("Email: ").strip()
        if not email:
            raise SystemExit("Email is required")
        if auth.email_taken(email):
            raise SystemExit(f"{email} is already registered")
        name = input("Name (optional): ").strip() or None

        pw1 = getpass("Password: ")
        pw2 = getpass("Repeat password: ")
        if pw1 != pw2:
            raise SystemExit("Passwords do not match")

        user = auth.register(email=email, password=pw1, name=name)
        print(f"OK -> user {user.id} ({user.email})")
    finally:
        db.close()


if __name__ == "__main__":
    main()
