"""Browser-based web UI for Null-Terminal.

This package provides a Flask application that exposes the shell
through a web browser.  It is an **optional** extra — install with::

    pip install nullterm[web]

The ``create_app`` factory in ``app.py`` seeds a session, creates a
shell, and serves four endpoints:

- ``GET /`` — HTML terminal page.
- ``POST /api/execute`` — execute a shell command and return JSON.
- ``POST /api/tokenize`` — show how a line splits into arguments.
- ``GET /api/status`` — session state and the current prompt.
"""
