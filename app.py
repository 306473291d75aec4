import os
import logging

from flask import Flask, jsonify
from flask_cors import CORS
from dotenv import load_dotenv

import db
from config_loader import load_config, get_limits
from errors import install_error_handlers, ValidationError, QuotaExceededError, UpstreamError
from generators.runware import get_api_key, runware_generate_image
from quota import QuotaTracker
from quota_api import quota_bp
from security import current_user_id, json_body

load_dotenv()
logging.basicConfig(level=logging.INFO)

app = Flask(__name__)
_cfg = load_config()
CORS(app, resources={r"/api/*": {"origins": _cfg["server"].get("cors_origins", ["*"])}})
install_error_handlers(app)
app.register_blueprint(quota_bp)


def consume(tracker, user_id, strict):
    """Check the quota and record one attempt. Returns (allowed, status)."""
    if strict:
        return tracker.try_consume(user_id)
    if not tracker.can_generate(user_id):
        return False, tracker.get_status(user_id)
    return True, tracker.record_attempt(user_id)


@app.route("/api/generate", methods=["POST"])
def generate():
    data = json_body()
    prompt = str(data.get("prompt") or "").strip()
    user_id = current_user_id()
    if not prompt or not user_id:
        raise ValidationError("Missing prompt or userId in request body.")

    api_key = get_api_key()
    if not api_key:
        raise UpstreamError("Server misconfiguration: missing RUNWARE_API_KEY.")

    cfg = load_config()
    verbose = cfg.get("logging", {}).get("verbose", False)
    max_attempts, cooldown_ms, strict = get_limits(cfg)
    tracker = QuotaTracker(max_attempts, cooldown_ms)

    allowed, status = consume(tracker, user_id, strict)
    if not allowed:
        raise QuotaExceededError(status)
    logging.info("Generating for %s (%d/%d used)", user_id, status.attempts_used, max_attempts)
    if verbose:
        logging.info("Prompt from %s: %s", user_id, prompt)

    try:
        image_url = runware_generate_image(prompt, cfg.get("runware", {}), api_key, verbose=verbose)
    except UpstreamError as e:
        # the attempt stays spent; the client still needs the new counter
        e.status = status
        raise

    return jsonify({"imageURL": image_url, **status.as_json()})


if __name__ == "__main__":
    db.init_db()
    logging.info("Connected to SQLite database at %s", os.path.abspath(db.DB_PATH))
    port = int(os.environ.get("PORT") or _cfg["server"].get("port", 3000))
    logging.info("Proxy server running on port %d", port)
    app.run(host="0.0.0.0", port=port)
