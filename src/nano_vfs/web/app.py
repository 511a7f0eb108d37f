"""Flask application factory for the nano-vfs web terminal.

The ``create_app`` function builds a shell over a fresh filesystem and
returns a Flask app with three endpoints:

- ``GET /`` — render the terminal page with the message of the day.
- ``POST /api/execute`` — execute a command and return JSON.
- ``GET /api/status`` — return the session's identity and location.

The browser cannot answer an interactive password prompt in the middle
of a request, so ``su`` and ``sudo`` read their password from the
optional ``password`` field of the same request.
"""

from __future__ import annotations

from flask import Flask, Response, jsonify, render_template, request

from nano_vfs.fs.vfs import VirtualFileSystem
from nano_vfs.logging import Logger
from nano_vfs.repl import read_motd
from nano_vfs.session import Session
from nano_vfs.shell import Shell

_HTTP_BAD_REQUEST = 400


def create_app() -> Flask:
    """Create and configure the Flask application.

    Returns:
        A configured Flask application ready to serve.

    """
    logger = Logger()
    vfs = VirtualFileSystem(logger=logger)
    session = Session()
    # Password supplied with the request currently being handled.
    supplied: dict[str, str | None] = {"password": None}

    def prompt_password(_prompt: str) -> str:
        return supplied["password"] or ""

    shell = Shell(vfs=vfs, session=session, logger=logger, prompt_password=prompt_password)
    closed = {"halted": False}

    app = Flask(__name__)

    @app.route("/")
    def index() -> str:  # pyright: ignore[reportUnusedFunction]
        """Render the terminal HTML page."""
        return render_template("index.html", motd=read_motd(shell), prompt=session.prompt)

    @app.route("/api/execute", methods=["POST"])
    def execute() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Execute a shell command and return JSON output.

        Expects JSON body: ``{"command": "...", "password": "..."}``
        (``password`` optional).

        Returns:
            JSON with ``output``, ``prompt`` and ``halted`` fields.

        """
        data = request.get_json(silent=True)
        if data is None or "command" not in data:
            return jsonify({"error": "Missing 'command' field"}), _HTTP_BAD_REQUEST

        if closed["halted"]:
            return jsonify({"output": "Session closed.", "prompt": "", "halted": True})

        supplied["password"] = data.get("password")
        try:
            result = shell.execute(str(data["command"]))
        finally:
            supplied["password"] = None

        if result == Shell.EXIT_SENTINEL:
            closed["halted"] = True
            return jsonify({"output": "Session closed.", "prompt": "", "halted": True})

        return jsonify({"output": result, "prompt": session.prompt, "halted": False})

    @app.route("/api/status")
    def status() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the session's user, directory, host name and prompt."""
        return jsonify(
            {
                "user": session.user,
                "cwd": session.cwd,
                "hostname": session.hostname,
                "prompt": session.prompt,
            }
        )

    return app


def main(port: int = 8080) -> None:
    """Run the web terminal development server.

    This is the ``nano-vfs-web`` console entry point.
    """
    app = create_app()
    app.run(debug=True, port=port)
