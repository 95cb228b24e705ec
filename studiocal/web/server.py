"""aiohttp server exposing the iCal feed and the import endpoint."""

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from aiohttp import web
from pydantic import BaseModel, ValidationError

from ..ics.exceptions import (
    ICSAuthError,
    ICSContentError,
    ICSError,
    ICSFetchError,
    ICSImportError,
    ICSNetworkError,
    ICSTimeoutError,
)
from ..ics.models import ImportOptions, ImportResult
from ..ics.service import CalendarInterchange

if TYPE_CHECKING:
    from ..config.settings import StudioCalSettings

logger = logging.getLogger(__name__)

INTERCHANGE_KEY = web.AppKey("interchange", CalendarInterchange)
SETTINGS_KEY = web.AppKey("settings", object)

FEED_CACHE_CONTROL = "no-cache, no-store, must-revalidate"

# Upstream failures while fetching a remote feed
UPSTREAM_ERRORS = (
    ICSFetchError,
    ICSAuthError,
    ICSNetworkError,
    ICSTimeoutError,
    ICSContentError,
)


class ImportRequest(BaseModel):
    """JSON body accepted by ``POST /calendar/import``."""

    calendar_id: Optional[str] = None
    ics_content: Optional[str] = None
    ics_url: Optional[str] = None
    dry_run: bool = False
    skip_duplicates: Optional[bool] = None


def _validation_message(error: ValidationError) -> str:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first["loc"]) or "body"
    return f"Invalid {field}: {first['msg']}"


def _error_response(message: str, status: int) -> web.Response:
    return web.json_response({"error": message}, status=status)


def _result_payload(result: ImportResult) -> Dict[str, Any]:
    payload = result.model_dump(mode="json")
    payload["warning_count"] = result.warning_count
    if not result.dry_run:
        payload.pop("drafts", None)
    return payload


async def handle_feed(request: web.Request) -> web.Response:
    """Serve the calendar as a downloadable ``.ics`` file."""
    interchange = request.app[INTERCHANGE_KEY]
    settings = request.app[SETTINGS_KEY]

    calendar_id = request.query.get("calendar_id") or None
    user_id = request.query.get("user_id") or None

    content = await interchange.export_to_ical(calendar_id=calendar_id, user_id=user_id)
    filename = getattr(settings, "feed_filename", "calendar.ics")

    return web.Response(
        text=content,
        content_type="text/calendar",
        charset="utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Cache-Control": FEED_CACHE_CONTROL,
        },
    )


async def handle_import(request: web.Request) -> web.Response:
    """Import an uploaded iCal document or a remote feed into a calendar.

    The body is JSON with ``calendar_id`` and either ``ics_content`` or
    ``ics_url``. Optional ``dry_run`` and ``skip_duplicates`` flags map to
    :class:`ImportOptions`.
    """
    interchange = request.app[INTERCHANGE_KEY]
    settings = request.app[SETTINGS_KEY]

    try:
        body = await request.json()
    except json.JSONDecodeError:
        return _error_response("Request body must be valid JSON", 400)

    if not isinstance(body, dict):
        return _error_response("Request body must be a JSON object", 400)

    try:
        payload = ImportRequest.model_validate(body)
    except ValidationError as e:
        return _error_response(_validation_message(e), 400)

    calendar_id = payload.calendar_id
    ics_content = payload.ics_content
    ics_url = payload.ics_url

    if not calendar_id:
        return _error_response("calendar_id is required", 400)
    if not ics_content and not ics_url:
        return _error_response("Either ics_content or ics_url is required", 400)

    skip_duplicates = payload.skip_duplicates
    if skip_duplicates is None:
        skip_duplicates = bool(getattr(settings, "skip_duplicates", False))
    options = ImportOptions(dry_run=payload.dry_run, skip_duplicates=skip_duplicates)

    try:
        if ics_content:
            result = await interchange.import_from_ical(ics_content, calendar_id, options)
        else:
            result = await interchange.import_from_url(ics_url, calendar_id, options)
    except UPSTREAM_ERRORS as e:
        logger.warning(f"Import from {ics_url} failed: {e.message}")
        return _error_response(e.message, 502)
    except ICSImportError as e:
        return _error_response(e.message, 400)
    except ICSError as e:
        logger.error(f"Import into {calendar_id} failed: {e.message}")
        return _error_response(e.message, 500)

    return web.json_response(_result_payload(result))


async def handle_health(_request: web.Request) -> web.Response:
    return web.json_response({"status": "ok"})


def create_app(interchange: CalendarInterchange, settings: Any = None) -> web.Application:
    """Create aiohttp web application with the calendar routes registered.

    Args:
        interchange: Service performing export and import
        settings: Application settings (optional)

    Returns:
        Configured ``web.Application``
    """
    app = web.Application()
    app[INTERCHANGE_KEY] = interchange
    app[SETTINGS_KEY] = settings

    app.router.add_get("/calendar.ics", handle_feed)
    app.router.add_post("/calendar/import", handle_import)
    app.router.add_get("/health", handle_health)

    logger.debug("Registered routes: /calendar.ics, /calendar/import, /health")
    return app


async def run_server(
    interchange: CalendarInterchange,
    settings: "StudioCalSettings",
    host: Optional[str] = None,
    port: Optional[int] = None,
    stop_event: Optional[asyncio.Event] = None,
) -> None:
    """Serve the application until ``stop_event`` is set or the task is cancelled."""
    app = create_app(interchange, settings)
    host = host or settings.web_host
    port = port or settings.web_port

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host=host, port=port)

    try:
        await site.start()
        logger.info(f"Serving calendar feed on http://{host}:{port}/calendar.ics")
        await (stop_event or asyncio.Event()).wait()
    finally:
        logger.info("Shutting down web server")
        await runner.cleanup()
