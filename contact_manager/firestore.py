"""Firestore client shared by the Firestore slot storage."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# One client per Google Cloud project; None is the ambient default project.
_clients: Dict[Optional[str], Any] = {}


def get_firestore_client(project: Optional[str] = None) -> Any:
    """Return a cached Firestore client for ``project``.

    The default firebase app is initialised on first use from the ambient
    credentials (GOOGLE_APPLICATION_CREDENTIALS or the metadata server).
    A ``project`` other than the default app's gets its own named app.
    """
    if project in _clients:
        return _clients[project]

    try:
        import firebase_admin
        from firebase_admin import firestore
    except ModuleNotFoundError as exc:  # pragma: no cover
        raise RuntimeError(
            "firebase-admin is required for the Firestore storage backend. "
            "Install dependencies or set CM_STORAGE_BACKEND=file."
        ) from exc

    if project is None:
        if not firebase_admin._apps:
            firebase_admin.initialize_app()
        app = firebase_admin.get_app()
    else:
        try:
            app = firebase_admin.get_app(project)
        except ValueError:
            app = firebase_admin.initialize_app(options={"projectId": project}, name=project)

    logger.info(f"[Storage] Connected to Firestore project {project or 'default'}")
    _clients[project] = firestore.client(app)
    return _clients[project]
