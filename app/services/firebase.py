# app/services/firebase.py
from __future__ import annotations

import os
from functools import lru_cache

import firebase_admin
from firebase_admin import credentials, firestore

from ..settings import settings


def _init_app() -> firebase_admin.App:
    options = {"projectId": settings.firebase_project_id}
    sa_path = settings.google_application_credentials
    if not sa_path:
        # application default credentials (Cloud Run, gcloud auth, emulator)
        return firebase_admin.initialize_app(options=options)
    if not os.path.isfile(sa_path):
        raise RuntimeError(
            f"Service account file not found at {sa_path!r}. "
            "Fix GOOGLE_APPLICATION_CREDENTIALS or unset it to use default credentials."
        )
    return firebase_admin.initialize_app(credentials.Certificate(sa_path), options)


@lru_cache
def ensure_firestore() -> firestore.Client:
    """Firestore client for the order rows. The Firebase app is created on first use."""
    try:
        app = firebase_admin.get_app()
    except ValueError:
        app = _init_app()
    return firestore.client(app)
