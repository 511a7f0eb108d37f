"""Browser-based terminal for nano-vfs.

This package provides a Flask application that exposes the shell
through a web browser.  It is an **optional** extra — install with::

    pip install nano-vfs[web]

The ``create_app`` factory in ``app.py`` builds a filesystem, opens a
session, and serves three endpoints:

- ``GET /`` — HTML terminal page with the message of the day.
- ``POST /api/execute`` — execute a shell command and return JSON.
- ``GET /api/status`` — current user, directory, and prompt.
"""
