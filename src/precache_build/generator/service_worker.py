"""Render the service-worker runtime script around a precache manifest."""

from __future__ import annotations

import json

import polars as pl

from precache_build.generator.base import GenerateOptions

SCRIPT_HEADER = """/**
 * Generated by precache-build. Changes to this file will be overwritten
 * the next time the build runs.
 */
"""


def manifest_entries(manifest: pl.DataFrame) -> list[dict[str, str]]:
    """Return ``{"url", "revision"}`` entries in manifest order."""

    if manifest.height == 0:
        return []
    return [
        {"url": str(row["url"]), "revision": str(row["revision"])}
        for row in manifest.select(["url", "revision"]).iter_rows(named=True)
    ]


def render_service_worker(manifest: pl.DataFrame, options: GenerateOptions) -> str:
    lines: list[str] = [SCRIPT_HEADER]
    lines.append(f"importScripts({json.dumps(options.workbox_cdn_url)});")
    if options.import_scripts:
        rendered = ", ".join(json.dumps(script) for script in options.import_scripts)
        lines.append(f"importScripts({rendered});")
    lines.append("")

    if options.cache_id:
        lines.append(f"workbox.core.setCacheNameDetails({{prefix: {json.dumps(options.cache_id)}}});")
        lines.append("")

    if options.skip_waiting:
        lines.append("self.skipWaiting();")
    else:
        lines.extend(
            [
                "self.addEventListener('message', (event) => {",
                "  if (event.data && event.data.type === 'SKIP_WAITING') {",
                "    self.skipWaiting();",
                "  }",
                "});",
            ]
        )
    if options.clients_claim:
        lines.append("workbox.core.clientsClaim();")
    lines.append("")

    entries = json.dumps(manifest_entries(manifest), indent=2)
    lines.append(f"workbox.precaching.precacheAndRoute({entries}, {{}});")

    if options.cleanup_outdated_caches:
        lines.append("workbox.precaching.cleanupOutdatedCaches();")
    if options.navigate_fallback:
        handler = f"workbox.precaching.createHandlerBoundToURL({json.dumps(options.navigate_fallback)})"
        lines.append(f"workbox.routing.registerRoute(new workbox.routing.NavigationRoute({handler}));")

    return "\n".join(lines) + "\n"
