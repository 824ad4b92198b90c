"""OpenAPI metadata and customization utilities.

Enriches the generated schema with tags metadata and documents the quota
response headers on the usage operations, keeping documentation concerns
out of the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

_QUOTA_HEADERS: Dict[str, Dict[str, Any]] = {
    "X-RateLimit-Limit": {
        "description": "Daily request limit per client.",
        "schema": {"type": "integer"},
    },
    "X-RateLimit-Remaining": {
        "description": "Requests left today.",
        "schema": {"type": "integer"},
    },
    "X-RateLimit-Reset": {
        "description": "UNIX time (seconds) of the next daily reset.",
        "schema": {"type": "integer"},
    },
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and quota headers.

    - Adds tags metadata if not present
    - Documents X-RateLimit-* headers on every ``/usage`` response and a
      429 response on the metered ``POST /usage``
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {
                "name": "Usage",
                "description": "Daily request quota per client identity.",
            },
            {
                "name": "Health",
                "description": "Liveness checks.",
            },
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        paths = schema.get("paths", {})
        for path, methods in paths.items():
            if not path.endswith("/usage"):
                continue
            for method, method_obj in methods.items():
                if not isinstance(method_obj, dict):
                    continue
                responses = method_obj.setdefault("responses", {})
                ok = responses.setdefault("200", {"description": "Successful Response"})
                ok.setdefault("headers", {}).update(_QUOTA_HEADERS)
                if method == "post":
                    responses.setdefault(
                        "429",
                        {
                            "description": "Daily quota exhausted.",
                            "headers": {
                                "Retry-After": {
                                    "description": "Seconds until the daily reset.",
                                    "schema": {"type": "integer"},
                                },
                                **_QUOTA_HEADERS,
                            },
                        },
                    )

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
