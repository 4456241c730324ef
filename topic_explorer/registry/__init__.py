"""
Topic Registry Module.

In-memory topic tree shared between the ingestion thread and the views.
"""
