"""
Services layer - business logic for City Reporter.

Each service takes its collaborators (Firestore client, blob store, notifier)
in its constructor; the ``get_*_service`` functions build them from the
initialized clients and are used as FastAPI dependencies.

- identity_service: users and admins (find-or-update by email)
- report_service: submission pipeline (upload, persist, notify)
- lifecycle_service: admin assignment, resolution status, action log
- comment_service: public comments
- query_service / statistics_service: read paths
- office_service: regional offices
"""
