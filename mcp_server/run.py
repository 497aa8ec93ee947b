#!/usr/bin/env python
"""
MCP Server Launcher

Builds the token store, token provider, domain services and tool registry,
then serves the tools over stdio (default) or REST.

Usage:
    python -m mcp_server.run                       # stdio
    python -m mcp_server.run --protocol rest --port 8000
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass
from functools import partial
from typing import Callable, List, Optional

from core.config import Settings
from core.graph_api import GraphApiClient
from core.protocols import TokenProviderProtocol, TokenStoreProtocol
from mcp_auth import AuthToolService, get_auth_tools
from mcp_calendar import CalendarService, get_calendar_tools
from mcp_folder import FolderService, get_folder_tools
from mcp_mail import MailService, get_mail_tools
from mcp_rules import RulesService, get_rules_tools
from session.auth_database import AuthDatabase
from session.auth_manager import AuthManager
from session.session_store import SessionStore

from .dispatcher import ToolDispatcher
from .errors import ToolConfigurationError
from .server_rest import RestMCPServer
from .server_stdio import StdioMCPServer
from .tool_registry import ToolProvider, ToolRegistry, build_tool_registry
from .transport import SUPPORTED_PROTOCOLS, ToolTransport

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


@dataclass
class Application:
    settings: Settings
    registry: ToolRegistry
    transport: ToolTransport
    auth_manager: AuthManager
    session_store: SessionStore


def make_graph_client_factory(settings: Settings, token_provider: TokenProviderProtocol) -> Callable[[str], GraphApiClient]:
    """user_id -> GraphApiClient"""

    def factory(user_id: str) -> GraphApiClient:
        return GraphApiClient(
            user_id=user_id,
            token_provider=token_provider,
            base_url=settings.get('graph_base_url'),
            timeout=settings.get('graph_timeout'),
            max_retries=settings.get('graph_max_retries'),
        )

    return factory


def build_providers(
    settings: Settings,
    token_store: TokenStoreProtocol,
    session_store: SessionStore,
    graph_client_factory: Callable[[str], GraphApiClient],
) -> List[ToolProvider]:
    """Domain tool providers, in registration order."""
    return [
        partial(get_auth_tools, AuthToolService(settings, token_store, session_store)),
        partial(get_mail_tools, MailService(graph_client_factory)),
        partial(get_calendar_tools, CalendarService(graph_client_factory)),
        partial(get_folder_tools, FolderService(graph_client_factory)),
        partial(get_rules_tools, RulesService(graph_client_factory)),
    ]


def create_transport(protocol: str, settings: Settings) -> ToolTransport:
    if protocol not in SUPPORTED_PROTOCOLS:
        raise ValueError(f"Unsupported protocol: {protocol} (supported: {', '.join(sorted(SUPPORTED_PROTOCOLS))})")

    if protocol == "rest":
        return RestMCPServer(settings.server_name, settings.server_version)
    return StdioMCPServer(settings.server_name, settings.server_version)


def build_application(
    settings: Settings,
    protocol: str = "stdio",
    token_store: Optional[TokenStoreProtocol] = None,
) -> Application:
    """
    Wire collaborators, build the registry and register every tool.

    Raises:
        ToolConfigurationError: duplicate tool names or malformed parameter schemas
    """
    token_store = token_store or AuthDatabase(settings.get('db_path'))
    auth_manager = AuthManager(token_store, settings)
    session_store = SessionStore(timeout_minutes=settings.get('session_timeout_minutes'))

    providers = build_providers(
        settings,
        token_store,
        session_store,
        make_graph_client_factory(settings, auth_manager),
    )
    registry = build_tool_registry(providers)
    dispatcher = ToolDispatcher(registry)

    transport = create_transport(protocol, settings)
    dispatcher.register_all(transport)

    return Application(
        settings=settings,
        registry=registry,
        transport=transport,
        auth_manager=auth_manager,
        session_store=session_store,
    )


async def serve(app: Application, protocol: str):
    await app.session_store.start()
    try:
        if protocol == "rest":
            await app.transport.run(app.settings.get('rest_host'), app.settings.get('rest_port'))
        else:
            await app.transport.run()
    finally:
        await app.session_store.stop()
        await app.auth_manager.close()


def main(argv=None) -> int:
    settings = Settings()

    parser = argparse.ArgumentParser(description="Outlook MCP tool server")
    parser.add_argument('--protocol', choices=sorted(SUPPORTED_PROTOCOLS), default=settings.get('protocol'),
                        help='Transport protocol (default: %(default)s)')
    parser.add_argument('--host', default=settings.get('rest_host'), help='REST bind host')
    parser.add_argument('--port', type=int, default=settings.get('rest_port'), help='REST bind port')
    parser.add_argument('--log-level', default=settings.get('log_level'), help='Logging level')
    args = parser.parse_args(argv)

    settings.config.update({'rest_host': args.host, 'rest_port': args.port, 'log_level': args.log_level})
    validation = settings.validate()

    # stdout carries the stdio protocol, logs go to stderr
    logging.basicConfig(
        level=getattr(logging, settings.get('log_level').upper(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )

    for warning in validation['warnings']:
        logger.warning(warning)
    if not validation['valid']:
        for error in validation['errors']:
            logger.error(f"❌ Invalid configuration: {error}")
        return 1

    try:
        app = build_application(settings, args.protocol)
    except ToolConfigurationError as e:
        logger.error(f"❌ Tool configuration error: {e}")
        return 1

    logger.info(f"Starting {settings.server_name} ({args.protocol}) with {len(app.registry)} tools")

    try:
        asyncio.run(serve(app, args.protocol))
    except KeyboardInterrupt:
        logger.info("Server stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
