"""
WebP media app - site integration and command line

It:
1. Rewrites rendered HTML so <img> elements serve WebP files
2. Exposes per-attachment convert/delete endpoints for bulk tools
3. Provides the `webp-media` command for conversion, purge and previews

Deployment:
    pip install webp-media
    flask --app webp_app.app:create_app run
"""

from .app import create_app

__all__ = ["create_app"]
