"""Flask application factory for the Null-Terminal web UI.

The ``create_app`` function seeds a filesystem, creates a shell, and
returns a Flask app serving the terminal page plus a small JSON API.
One app instance holds one session.
"""

from __future__ import annotations

from flask import Flask, Response, jsonify, render_template, request

from nullterm.args import split_args, tokenize
from nullterm.repl import VERSION_INFO, new_session
from nullterm.shell import Shell

_HTTP_BAD_REQUEST = 400


def create_app() -> Flask:
    """Create and configure the Flask application.

    Returns:
        A configured Flask application ready to serve.

    """
    shell = new_session()
    state = {"running": True}

    app = Flask(__name__)

    def _session() -> dict[str, object]:
        return {
            "prompt": shell.prompt(),
            "cwd": shell.filesystem.cwd.path(),
        }

    @app.route("/")
    def index() -> str:  # pyright: ignore[reportUnusedFunction]
        """Render the terminal HTML page."""
        return render_template("index.html", version=VERSION_INFO, prompt=shell.prompt())

    @app.route("/api/execute", methods=["POST"])
    def execute() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Execute a shell command and return JSON output.

        Expects JSON body: ``{"command": "..."}``

        Returns:
            JSON with ``output``, ``prompt``, ``cwd`` and ``halted`` fields.

        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or not isinstance(data.get("command"), str):
            return jsonify({"error": "Missing 'command' field"}), _HTTP_BAD_REQUEST

        if not state["running"]:
            return jsonify({"output": "Session closed.", "halted": True, **_session()})

        result = shell.execute(data["command"])
        if result == Shell.EXIT_SENTINEL:
            state["running"] = False
            return jsonify({"output": "Session closed.", "halted": True, **_session()})

        return jsonify({"output": result, "halted": False, **_session()})

    @app.route("/api/tokenize", methods=["POST"])
    def tokenize_line() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Split a line into tokens, switches and parameters.

        Expects JSON body: ``{"line": "..."}``.  ``switches`` and
        ``params`` describe the arguments after the command name.

        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or not isinstance(data.get("line"), str):
            return jsonify({"error": "Missing 'line' field"}), _HTTP_BAD_REQUEST

        tokens = tokenize(data["line"])
        parsed = split_args(tokens[1:])
        return jsonify({"tokens": tokens, "switches": parsed.switches, "params": parsed.params})

    @app.route("/api/status")
    def status() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return session state for status polling."""
        return jsonify({"running": state["running"], **_session()})

    return app


def main() -> None:
    """Run the web UI development server.

    This is the ``nullterm-web`` console entry point.
    """
    app = create_app()
    app.run(debug=True, port=8080)
