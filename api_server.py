#!/usr/bin/env python3
"""
Read-only HTTP API over the deployment index

Endpoints:
  GET /                         - API description
  GET /health                   - health check
  GET /api/deployments[?step=]  - all ledger records, optionally by step
  GET /api/deployments/latest   - latest successful deployment
  GET /api/stats                - success/failure statistics
"""

import logging
import sys
import time

from aiohttp import web

from minter import __version__
from minter.config import Config, load_config
from minter.database import DeploymentLedger
from minter.database.deployment_ledger import utc_timestamp
from minter.errors import ConfigurationError
from minter.logging_setup import setup_logging


ENDPOINTS = ['/', '/health', '/api/deployments', '/api/deployments/latest', '/api/stats']

SECURITY_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Methods': 'GET, POST, OPTIONS',
    'Access-Control-Allow-Headers': 'Content-Type',
    'X-Content-Type-Options': 'nosniff',
    'X-Frame-Options': 'DENY',
    'X-XSS-Protection': '1; mode=block',
}

CONFIG_KEY = web.AppKey('config', Config)
LEDGER_KEY = web.AppKey('ledger', DeploymentLedger)
STARTED_AT_KEY = web.AppKey('started_at', float)

logger = logging.getLogger('nft_deployer')


@web.middleware
async def security_headers_middleware(request, handler):
    try:
        response = await handler(request)
    except web.HTTPException as exc:
        exc.headers.update(SECURITY_HEADERS)
        raise
    response.headers.update(SECURITY_HEADERS)
    return response


@web.middleware
async def request_logging_middleware(request, handler):
    logger.info(f"{request.method} {request.path} - {request.remote}")
    return await handler(request)


@web.middleware
async def error_middleware(request, handler):
    try:
        return await handler(request)
    except web.HTTPNotFound:
        return web.json_response(
            {'error': 'Endpoint not found', 'availableEndpoints': ENDPOINTS},
            status=404,
        )
    except web.HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unhandled error: {e}")
        config = request.app[CONFIG_KEY]
        return web.json_response(
            {
                'error': 'Internal server error',
                'message': str(e) if config.api.is_development else 'Something went wrong',
            },
            status=500,
        )


async def handle_health(request):
    config = request.app[CONFIG_KEY]
    return web.json_response({
        'status': 'healthy',
        'timestamp': utc_timestamp(),
        'uptime': round(time.monotonic() - request.app[STARTED_AT_KEY], 3),
        'version': __version__,
        'network': config.solana.network,
    })


async def handle_root(request):
    config = request.app[CONFIG_KEY]
    return web.json_response({
        'name': 'Solayer NFT Deployment API',
        'version': __version__,
        'network': config.solana.network,
        'endpoints': {
            'health': '/health',
            'deployments': '/api/deployments',
            'latest': '/api/deployments/latest',
            'stats': '/api/stats',
        },
    })


async def handle_deployments(request):
    ledger = request.app[LEDGER_KEY]
    if not ledger.exists():
        return web.json_response({
            'error': 'No deployments found',
            'message': 'Run the deployment script first: python nft_deployer.py',
        }, status=404)

    try:
        deployments = ledger.filter_by_step(request.query.get('step'))
    except (OSError, ValueError) as e:
        logger.error(f"Error reading deployments: {e}")
        return web.json_response({'error': 'Failed to read deployments', 'message': str(e)}, status=500)

    return web.json_response({
        'total': len(deployments),
        'deployments': deployments,
        'filters': dict(request.query),
    })


async def handle_latest(request):
    ledger = request.app[LEDGER_KEY]
    if not ledger.exists():
        return web.json_response({'error': 'No deployments found'}, status=404)

    try:
        latest = ledger.latest_successful()
    except (OSError, ValueError) as e:
        logger.error(f"Error reading latest deployment: {e}")
        return web.json_response({'error': 'Failed to read latest deployment'}, status=500)

    if latest is None:
        return web.json_response({'error': 'No successful deployments found'}, status=404)
    return web.json_response(latest)


async def handle_stats(request):
    ledger = request.app[LEDGER_KEY]
    try:
        stats = ledger.stats()
    except (OSError, ValueError) as e:
        logger.error(f"Error calculating stats: {e}")
        return web.json_response({'error': 'Failed to calculate statistics'}, status=500)

    if not ledger.exists():
        del stats['lastDeployment']
    return web.json_response(stats)


def create_app(config: Config) -> web.Application:
    """Build the aiohttp application for the given configuration"""
    app = web.Application(middlewares=[
        security_headers_middleware,
        request_logging_middleware,
        error_middleware,
    ])
    app[CONFIG_KEY] = config
    app[LEDGER_KEY] = DeploymentLedger(config.deployment_index)
    app[STARTED_AT_KEY] = time.monotonic()

    app.router.add_get('/health', handle_health)
    app.router.add_get('/', handle_root)
    app.router.add_get('/api/deployments', handle_deployments)
    app.router.add_get('/api/deployments/latest', handle_latest)
    app.router.add_get('/api/stats', handle_stats)
    return app


def main() -> int:
    try:
        config = load_config(require_keypair=False)
    except ConfigurationError as e:
        print(f"❌ CONFIGURATION ERROR: {e}")
        return 1

    setup_logging(config.debug)
    port = config.api.port

    print(f"🚀 NFT API Server running on http://localhost:{port}")
    print(f"📊 Deployments: http://localhost:{port}/api/deployments")
    print(f"❤️  Health: http://localhost:{port}/health")
    print(f"📈 Stats: http://localhost:{port}/api/stats")
    print(f"🌐 Network: {config.solana.network}")

    # run_app handles SIGINT/SIGTERM and closes the server cleanly
    web.run_app(create_app(config), port=port, print=None)
    print("Server closed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
