"""
Ingestion for Topic Explorer.

- Event sources: Zenoh subscriber and an in-process queue
- Ingestion Coordinator: applies events to the Topic Registry
"""
