"""
app.py

Flask entrypoint for the webhook inspector.

This file intentionally focuses on:
- Flask routing (UI page + JSON APIs under /api)
- Wiring the per-app services (config store, webhook inbox) from env settings

Config persistence lives in `config_store.py`, the event log / SSE fan-out in
`webhook_monitor.py` and the outbound relay in `relay.py`.
"""

import os
import traceback
from typing import Any, Dict, Optional

from flask import Flask, Response, jsonify, request, send_from_directory
from dotenv import load_dotenv
from werkzeug.exceptions import BadRequest, HTTPException

from config_store import ConfigStore
from errors import WebhookAppError
from relay import send_webhook
from webhook_helpers import get_configs_path, get_env_float, get_env_int
from webhook_monitor import WebhookEventHub, WebhookInbox


def _settings_from_env() -> Dict[str, Any]:
    return {
        "CONFIGS_FILE": get_configs_path(),
        "RELAY_TIMEOUT_SECONDS": get_env_float("WEBHOOK_RELAY_TIMEOUT_SECONDS", 10.0),
        "STREAM_KEEPALIVE_SECONDS": get_env_float("WEBHOOK_STREAM_KEEPALIVE_SECONDS", 15.0),
        "SUBSCRIBER_QUEUE_SIZE": get_env_int("WEBHOOK_SUBSCRIBER_QUEUE_SIZE", 0),
    }


def _json_object_body() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _received_body() -> Any:
    """
    Parsed JSON when the request is JSON (a JSON `null` stays None), the raw text
    otherwise or when the JSON does not parse. An empty body is recorded as {}.
    """
    if request.is_json:
        try:
            return request.get_json()
        except BadRequest:
            pass
    raw = request.get_data(as_text=True)
    return raw if raw else {}


def create_app(config_overrides: Optional[Dict[str, Any]] = None) -> Flask:
    load_dotenv()

    app = Flask(__name__, static_folder="public", static_url_path="/static")
    app.config.update(_settings_from_env())
    if config_overrides:
        app.config.update(config_overrides)

    config_store = ConfigStore(app.config["CONFIGS_FILE"])
    inbox = WebhookInbox(
        hub=WebhookEventHub(max_queue_size=app.config["SUBSCRIBER_QUEUE_SIZE"]),
        keepalive_seconds=app.config["STREAM_KEEPALIVE_SECONDS"],
    )
    app.extensions["config_store"] = config_store
    app.extensions["webhook_inbox"] = inbox

    @app.errorhandler(WebhookAppError)
    def handle_app_error(e: WebhookAppError):
        return jsonify({"ok": False, "error": e.message}), e.status_code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e: Exception):
        # Unknown routes / wrong methods keep their own status codes.
        if isinstance(e, HTTPException):
            return e
        traceback.print_exc()
        return jsonify({"ok": False, "error": "Internal server error", "detail": str(e)}), 500

    @app.get("/")
    def index_page():
        return send_from_directory(app.static_folder, "index.html")

    @app.get("/api/health")
    def health():
        return jsonify(
            {
                "status": "ok",
                "events": len(inbox.event_log),
                "subscribers": inbox.hub.subscriber_count,
            }
        )

    # ── Config CRUD ──

    @app.get("/api/configs")
    def api_list_configs():
        return jsonify({"ok": True, "names": config_store.list_names()})

    @app.get("/api/configs/<name>")
    def api_get_config(name: str):
        rules = config_store.get(name)
        return jsonify({"ok": True, "name": name, "rules": rules})

    @app.post("/api/configs")
    def api_save_config():
        """
        Save a config { name, rules: [...] }.
        The name is trimmed; an existing config with that name is fully replaced.
        """
        payload = _json_object_body()
        name = config_store.save(payload.get("name"), payload.get("rules"))
        print(f"[configs] saved name={name!r}")
        return jsonify({"ok": True, "name": name})

    @app.delete("/api/configs/<name>")
    def api_delete_config(name: str):
        config_store.delete(name)
        print(f"[configs] deleted name={name!r}")
        return jsonify({"ok": True})

    # ── Webhooks ──

    @app.post("/api/webhook/receive")
    def api_webhook_receive():
        """Accept any incoming webhook payload; never rejects."""
        event = inbox.receive(request.headers, _received_body())
        return jsonify({"ok": True, "id": event["id"]})

    @app.post("/api/webhook/send")
    def api_webhook_send():
        """
        Send a test webhook { url, payload } to an external URL.
        Upstream statuses are reported as-is; transport failures become 502.
        """
        payload = _json_object_body()
        result = send_webhook(
            payload.get("url"),
            payload.get("payload"),
            timeout=app.config["RELAY_TIMEOUT_SECONDS"],
        )
        return jsonify({"ok": True, **result})

    @app.get("/api/events")
    def api_events_stream():
        """
        Server-Sent Events stream of received webhooks.

        Everything received so far is replayed first, then live events follow.
        """
        sub = inbox.subscribe()
        print(f"[events] client connected (subscribers={inbox.hub.subscriber_count})")

        def generate():
            try:
                yield from inbox.stream(sub)
            finally:
                print(f"[events] client disconnected (subscribers={inbox.hub.subscriber_count})")

        headers = {
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
            "Connection": "keep-alive",
        }
        response = Response(generate(), headers=headers, mimetype="text/event-stream")
        # Covers clients that disconnect before the first frame is sent.
        response.call_on_close(lambda: inbox.unsubscribe(sub))
        return response

    return app


if __name__ == "__main__":
    app = create_app()
    host = os.getenv("APP_HOST", "0.0.0.0")
    port = int(os.getenv("APP_PORT", "3000"))
    debug = os.getenv("FLASK_DEBUG", "0") == "1"
    print(f"Webhook inspector running at http://{host}:{port}")
    print(f"Receive webhooks at POST http://localhost:{port}/api/webhook/receive")
    app.run(host=host, port=port, debug=debug, threaded=True)
