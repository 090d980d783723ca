#!/usr/bin/env python3
"""Flask stand-in for the Functions emulator.

Routes the emulator-style URLs to the handlers in main so the frontend can
run against a local process:

    python serve_local.py            # http://127.0.0.1:5002

- POST /<project>/us-central1/analyze         JSON analyze / approve
- POST /<project>/us-central1/analyze_stream  SSE progress stream
- GET  /health                                liveness plus loaded categories
"""

import os

os.environ.setdefault("FUNCTIONS_EMULATOR", "true")
os.environ.setdefault("GCLOUD_PROJECT", "shouldcost-dev")
os.environ.setdefault("FIRESTORE_EMULATOR_HOST", "127.0.0.1:8081")

from flask import Flask, jsonify, request
from flask_cors import CORS

# main reads the environment at import time
from main import analyze, analyze_stream
from prompts import prompt_registry

app = Flask(__name__)
CORS(app)

FUNCTION_PREFIX = f"/{os.environ['GCLOUD_PROJECT']}/us-central1"


class EmulatedRequest:
    """The slice of https_fn.Request the handlers read."""

    def __init__(self, flask_request):
        self.method = flask_request.method
        self.headers = dict(flask_request.headers)
        self._request = flask_request

    def get_json(self, force=False, silent=False):
        return self._request.get_json(force=force, silent=silent)


def _register(name, handler):
    def view():
        return handler(EmulatedRequest(request))

    app.add_url_rule(f"{FUNCTION_PREFIX}/{name}", endpoint=name, view_func=view, methods=["POST", "OPTIONS"])


_register("analyze", analyze)
_register("analyze_stream", analyze_stream)


@app.route("/health", methods=["GET"])
def health():
    return jsonify({
        "status": "ok",
        "service": "shouldcost-functions",
        "cachedPrompts": prompt_registry.cached_keys(),
    })


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5002))
    print(f"ShouldCost functions on http://127.0.0.1:{port}{FUNCTION_PREFIX}/{{analyze,analyze_stream}}")
    app.run(host="127.0.0.1", port=port, debug=True, threaded=True)
