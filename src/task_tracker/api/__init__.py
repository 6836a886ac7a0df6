"""
Task Tracker HTTP service.

The ASGI application lives in task_tracker.api.main (``app``, or ``create_app()``
for an instance bound to explicit settings or an explicit store).
"""
