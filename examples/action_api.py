"""
Example: a self-documenting, self-testing action API mounted on FastAPI.

Run it with ``uvicorn examples.action_api:app`` and, from another shell,
``python -c "from examples.action_api import api; api.test('http://localhost:8000')"``.
"""

from __future__ import annotations

import json

from fastapi import FastAPI, Response

from selfapi import resource

app = FastAPI()
api = resource(app, "/api", "Action API v1")


def _json(status: int, payload: dict) -> Response:
    return Response(json.dumps(payload), status_code=status, media_type="application/json")


@api.get(
    "/:action",
    title="Perform an action",
    description="Perform a requested action to the best of our ability.",
    examples=[
        {
            "request": {"urlParameters": {"action": "create"}},
            "response": {"status": 201, "body": json.dumps({"status": "Created the thing"})},
        },
        {
            # Fails on purpose: the handler answers 500.
            "request": {"urlParameters": {"action": "coffee"}},
            "response": {"status": 418, "body": json.dumps({"error": "I'm a teapot"})},
        },
        {
            "request": {"urlParameters": {"action": "ping"}},
            "response": {"body": "pong"},
        },
        {
            "request": {"urlParameters": {"action": "secret"}},
            "response": {"status": 403},
        },
        {
            "request": {"urlParameters": {"action": "jumparound"}},
            "response": {
                "status": 400,
                "body": json.dumps({"error": "No such action: jumparound"}),
            },
        },
    ],
)
async def perform_action(action: str) -> Response:
    if action == "create":
        return _json(201, {"status": "Created the thing"})
    if action == "coffee":
        return _json(500, {"error": "Not implemented yet"})
    if action == "ping":
        return Response("pong", media_type="text/plain")
    if action == "secret":
        return _json(403, {"error": "You will experience a tingling sensation and then death"})
    return _json(400, {"error": f"No such action: {action}"})
