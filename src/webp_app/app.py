"""Flask application factory wiring WebP delivery into a site."""

from __future__ import annotations

import logging
import sys

from flask import Flask, Response, current_app, request
from flask_cors import CORS

from webp_media.config import Settings
from webp_media.locator import VariantLocator
from webp_media.store import AttachmentStore, ManifestStore
from webp_rewrite import RewriteEngine

from .routes import attachments_bp

logger = logging.getLogger(__name__)


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def rewrite_html_response(response: Response) -> Response:
    """Pass rendered HTML through the rewrite engine."""
    if response.direct_passthrough or response.is_streamed or response.mimetype != "text/html":
        return response

    engine: RewriteEngine = current_app.config["rewrite_engine"]
    settings: Settings = current_app.config["settings"]

    body = response.get_data(as_text=True)
    rewritten = engine.rewrite(
        body,
        accept=request.headers.get("Accept", ""),
        user_agent=request.headers.get("User-Agent", ""),
    )
    if rewritten != body:
        response.set_data(rewritten)

    # inline output depends on the client's headers
    if not settings.fallback_mode and not settings.force:
        response.vary.add("Accept")
        response.vary.add("User-Agent")
    return response


def create_app(settings: Settings | None = None, store: AttachmentStore | None = None) -> Flask:
    """Create and configure the Flask application."""
    if settings is None:
        settings = Settings.load()

    configure_logging(settings.debug)

    locator = VariantLocator(settings.media_root, settings.media_url)
    if store is None:
        store = ManifestStore.load(settings.manifest_path, locator)

    app = Flask(__name__)
    CORS(app, resources={r"/api/*": {"origins": "*"}})

    app.config["settings"] = settings
    app.config["locator"] = locator
    app.config["store"] = store
    app.config["rewrite_engine"] = RewriteEngine(store, locator, settings)

    app.register_blueprint(attachments_bp)
    app.after_request(rewrite_html_response)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    logger.info("WebP media app initialized (%s mode)", settings.rewrite_mode)
    return app


def main() -> None:
    """Entry point for running the development server."""
    app = create_app()
    app.run(host="127.0.0.1", port=5001, debug=True, use_reloader=False)


if __name__ == "__main__":
    main()
