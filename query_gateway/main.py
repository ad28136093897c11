"""
Main FastAPI application for the Query Gateway.
Builds the route table once, wires the cache and the ledger client, and
serves every analytical route through one dispatcher.
"""

import argparse
from contextlib import asynccontextmanager
from typing import List, Optional
from fastapi import FastAPI, Request
from fastapi.responses import Response
import time

from .api.dispatcher import RouteDispatcher
from .api.endpoints import router as api_router
from .api.schemas import Instrument
from .core.config import GatewayOptions, Settings, resolve_options, settings as default_settings
from .core.logging_config import setup_logging, create_logger
from .providers.ledger_provider import LedgerQueryProvider
from .routes.base import build_route_table
from .routes.market_makers import MarketMakersRoute
from .routes.offers_exercised import OffersExercisedRoute
from .services.aggregator import MarketAggregator
from .services.cache import ResponseCache

logger = create_logger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,PUT,POST,DELETE,OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, Content-Length, X-Requested-With",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect collaborators on startup and release them on shutdown."""
    logger.info("Starting Query Gateway", extra={
        "version": app.version,
        "environment": app.state.settings.environment,
        "debug": app.state.options.debug,
        "cache_enabled": app.state.options.cache_enabled
    })

    await app.state.ledger.connect()
    await app.state.cache.start()

    logger.info("Query Gateway started", extra={
        "routes": app.state.dispatcher.route_keys
    })

    yield  # Application is running

    logger.info("Shutting down Query Gateway")
    await app.state.ledger.disconnect()
    await app.state.cache.disconnect()


def create_app(
    settings: Optional[Settings] = None,
    options: Optional[GatewayOptions] = None,
    ledger: Optional[LedgerQueryProvider] = None,
    cache: Optional[ResponseCache] = None
) -> FastAPI:
    """Build the gateway application and its immutable route table."""
    settings = settings or default_settings
    options = options or resolve_options(settings)

    ledger = ledger or LedgerQueryProvider(
        settings.ledger_query_url,
        timeout=settings.ledger_query_timeout,
        retry_count=settings.ledger_query_retries
    )
    cache = cache or ResponseCache(options)

    basket = [Instrument(**market) for market in settings.get_default_markets_list()]
    routes = build_route_table([
        MarketMakersRoute(MarketAggregator(ledger), basket, settings.native_currency),
        OffersExercisedRoute(ledger, settings.native_currency),
    ])

    app = FastAPI(
        title=settings.app_name,
        description="Analytical query gateway over the ledger query service",
        version=settings.app_version,
        docs_url="/docs" if options.debug else None,
        redoc_url=None,
        openapi_url="/openapi.json" if options.debug else None,
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.options = options
    app.state.ledger = ledger
    app.state.cache = cache
    app.state.dispatcher = RouteDispatcher(routes, cache)

    @app.middleware("http")
    async def cross_origin(request: Request, call_next):
        """Attach cross-origin headers to every response and answer pre-flight requests."""
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=CORS_HEADERS)

        start_time = time.time()
        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        response.headers["X-Process-Time"] = str(time.time() - start_time)
        return response

    app.include_router(api_router)
    return app


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="query-gateway", description="Ledger query gateway")
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    parser.add_argument("--no-cache", action="store_true", help="force-disable the response cache")
    parser.add_argument("--host", default=None, help="listen address")
    parser.add_argument("--port", type=int, default=None, help="listen port")
    return parser.parse_args(argv)


def run(argv: Optional[List[str]] = None) -> None:
    """Command line entry point."""
    import uvicorn

    args = parse_args(argv)
    setup_logging(default_settings.log_level, default_settings.log_format, debug=args.debug)
    options = resolve_options(default_settings, debug=args.debug, no_cache=args.no_cache)

    host = args.host or default_settings.server_host
    port = args.port or default_settings.server_port
    logger.info("Listening", extra={"host": host, "port": port})

    uvicorn.run(
        create_app(default_settings, options),
        host=host,
        port=port,
        log_level="debug" if options.debug else default_settings.log_level.lower(),
        access_log=options.debug
    )


if __name__ == "__main__":
    run()
