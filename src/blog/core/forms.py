# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Form validation returning field-keyed messages (None = field OK)."""

from __future__ import annotations

from typing import Dict, Optional

FormErrors = Dict[str, Optional[str]]

PUBLISH_STATUSES = ("draft", "publish")


def has_errors(errors: FormErrors) -> bool:
    return any(errors.values())


def validate_login(email: str, password: str) -> FormErrors:
    return {
        "email": None if email else "Please enter your email address.",
        "password": None if password else "Please enter your password.",
    }


def validate_registration(name: str, email: str, password: str, confirm_password: str) -> FormErrors:
    return {
        "name": None if name else "Please enter your name.",
        "email": None if email else "Please enter your email address.",
        "password": None if password else "Please enter a password.",
        "confirm_password": (
            None if confirm_password and password == confirm_password else "Passwords do not match."
        ),
    }


def validate_post(title: str, content: str, publish_status: str) -> FormErrors:
    errors: FormErrors = {
        "title": None if title else "Please enter a title.",
        "content": None if content else "Please enter some content.",
        "publish_status": None,
    }
    if publish_status not in PUBLISH_STATUSES:
        errors["publish_status"] = "Choose draft or publish."
    return errors
