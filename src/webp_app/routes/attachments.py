"""Bulk conversion and deletion endpoints, one attachment per request."""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify

from webp_media.models import SUPPORTED_MIME_TYPES
from webp_media.outcome import ConversionOutcome
from webp_pipeline import CleanupPipeline, ConversionPipeline

logger = logging.getLogger(__name__)

attachments_bp = Blueprint("attachments", __name__, url_prefix="/api")


def _payload(outcomes: list[ConversionOutcome]):
    first = outcomes[0] if outcomes else None
    return jsonify({
        "message": first.message if first else "Done",
        "classes": list(first.classes) if first else [],
        "success": all(outcome.success for outcome in outcomes),
        "outcomes": [outcome.to_dict() for outcome in outcomes],
    })


@attachments_bp.get("/attachments")
def list_attachments():
    """Ids of every attachment that can be converted."""
    store = current_app.config["store"]
    return jsonify({"attachments": store.ids(SUPPORTED_MIME_TYPES)})


@attachments_bp.post("/convert/<int:attachment_id>")
def convert(attachment_id: int):
    store = current_app.config["store"]
    pipeline = ConversionPipeline(store, current_app.config["locator"], current_app.config["settings"])
    outcomes = pipeline.prepare(attachment_id, store.metadata(attachment_id))
    logger.info("Converted attachment %d: %d files", attachment_id, len(outcomes))
    return _payload(outcomes)


@attachments_bp.post("/delete/<int:attachment_id>")
def delete(attachment_id: int):
    store = current_app.config["store"]
    pipeline = CleanupPipeline(store, current_app.config["locator"], current_app.config["settings"])
    outcomes = pipeline.prepare(attachment_id, store.metadata(attachment_id))
    logger.info("Cleaned attachment %d: %d files", attachment_id, len(outcomes))
    return _payload(outcomes)
