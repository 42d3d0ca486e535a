from __future__ import annotations

import firebase_admin
from firebase_admin import credentials


def initialize_firebase_app(
    credentials_file: str | None,
    project_id: str | None,
) -> firebase_admin.App:
    # Initialize Firebase Admin SDK if not already initialized
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    cred = (
        credentials.Certificate(credentials_file)
        if credentials_file
        else credentials.ApplicationDefault()
    )
    options = {"projectId": project_id} if project_id else None
    return firebase_admin.initialize_app(cred, options)
