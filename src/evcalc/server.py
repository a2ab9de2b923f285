"""HTTP surface for single and batch EV calculation."""

import asyncio
import json
import logging
from typing import Optional

from aiohttp import web
from pydantic import ValidationError

from evcalc import __version__
from evcalc.config import AppConfig, get_config
from evcalc.engine import calculate_ev, calculate_ev_batch
from evcalc.ingestion import OddsShopperClient, OfferProvider, RedisCache
from evcalc.models import BatchCalculateEVRequest, CalculateEVRequest
from evcalc.result import Err

logger = logging.getLogger(__name__)

PROVIDER_KEY = web.AppKey("provider", OfferProvider)
CACHE_KEY = web.AppKey("cache", RedisCache)


def should_skip_cache(request: web.Request) -> bool:
    """Bypass caches on ``Cache-Control: no-cache`` or ``?fresh=true``."""
    return (
        request.headers.get("Cache-Control") == "no-cache"
        or request.query.get("fresh") == "true"
    )


def _invalid_body(details: str) -> web.Response:
    return web.json_response({"error": "Invalid request body", "details": details}, status=400)


async def _read_json(request: web.Request) -> object:
    """Parse the body as JSON; raises ValueError on malformed input."""
    text = await request.text()
    return json.loads(text)


async def calculate_ev_endpoint(request: web.Request) -> web.Response:
    """Handle POST /calculate-ev.

    Args:
        request: aiohttp request

    Returns:
        200 with the EV result, 400 for an invalid body, or the failure's
        mapped status with ``{error, code}``
    """
    try:
        try:
            payload = CalculateEVRequest.model_validate(await _read_json(request))
        except ValidationError as e:
            return _invalid_body(str(e))
        except ValueError as e:
            return _invalid_body(f"Malformed JSON: {e}")

        result = await calculate_ev(
            payload,
            request.app[PROVIDER_KEY],
            request.app.get(CACHE_KEY),
            skip_cache=should_skip_cache(request),
        )

        if isinstance(result, Err):
            error = result.error
            return web.json_response(
                {"error": error.message, "code": error.code},
                status=error.http_status,
            )

        return web.json_response(result.value.model_dump(mode="json", by_alias=True))

    except Exception as e:
        logger.exception("Unhandled error in /calculate-ev")
        return web.json_response({"error": str(e) or "Internal server error"}, status=500)


async def calculate_ev_batch_endpoint(request: web.Request) -> web.Response:
    """Handle POST /calculate-ev/batch.

    Per-item failures are reported inside the envelope, so any valid body
    gets a 200.
    """
    try:
        try:
            payload = BatchCalculateEVRequest.model_validate(await _read_json(request))
        except ValidationError as e:
            return _invalid_body(str(e))
        except ValueError as e:
            return _invalid_body(f"Malformed JSON: {e}")

        response = await calculate_ev_batch(
            payload,
            request.app[PROVIDER_KEY],
            request.app.get(CACHE_KEY),
            skip_cache=should_skip_cache(request),
        )
        return web.json_response(response.model_dump(mode="json", by_alias=True))

    except Exception as e:
        logger.exception("Unhandled error in /calculate-ev/batch")
        return web.json_response({"error": str(e) or "Internal server error"}, status=500)


async def health_endpoint(request: web.Request) -> web.Response:
    return web.json_response({"status": "ok", "version": __version__})


async def _connect_cache(app: web.Application) -> None:
    await app[CACHE_KEY].connect()


async def _close_cache(app: web.Application) -> None:
    await app[CACHE_KEY].close()


def create_app(
    provider: OfferProvider,
    cache: Optional[RedisCache] = None,
) -> web.Application:
    """Create aiohttp application with EV routes.

    Args:
        provider: Offer data source shared by all requests
        cache: Optional cache; connected on startup and closed on cleanup

    Returns:
        Configured aiohttp Application
    """
    app = web.Application()
    app[PROVIDER_KEY] = provider

    if cache is not None:
        app[CACHE_KEY] = cache
        app.on_startup.append(_connect_cache)
        app.on_cleanup.append(_close_cache)

    app.router.add_post("/calculate-ev", calculate_ev_endpoint)
    app.router.add_post("/calculate-ev/batch", calculate_ev_batch_endpoint)
    app.router.add_get("/health", health_endpoint)

    return app


def build_app(config: AppConfig) -> web.Application:
    """Wire the cache and OddsShopper client from configuration."""
    cache = RedisCache(
        redis_url=config.redis_url,
        api_ttl=config.redis_api_cache_ttl,
        ev_ttl=config.redis_ev_cache_ttl,
    )
    client = OddsShopperClient.from_config(config, cache=cache)
    return create_app(client, cache)


async def run_server(shutdown_event: Optional[asyncio.Event] = None) -> None:
    """Run the HTTP server until shutdown signal.

    Args:
        shutdown_event: Optional event to signal shutdown
    """
    config = get_config()
    app = build_app(config)

    runner = web.AppRunner(app)
    await runner.setup()

    site = web.TCPSite(runner, "0.0.0.0", config.port)
    await site.start()

    logger.info(f"EV server listening on port {config.port} (env={config.env})")

    if shutdown_event:
        await shutdown_event.wait()
    else:
        await asyncio.Event().wait()

    logger.info("Shutting down EV server...")
    await runner.cleanup()
