"""Command-line interface for aichatbot."""

import argparse
import asyncio
import logging
import sys

import uvicorn

from .config import settings


def main():
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="aichatbot - chat assistant with OpenRouter/OpenAI failover"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Server command
    server_parser = subparsers.add_parser("serve", help="Start the web server")
    server_parser.add_argument(
        "--host", default=settings.host, help=f"Host to bind to (default: {settings.host})"
    )
    server_parser.add_argument(
        "--port", type=int, default=settings.port, help=f"Port to bind to (default: {settings.port})"
    )
    server_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )

    # Interactive command
    chat_parser = subparsers.add_parser("chat", help="Start an interactive chat session")
    chat_parser.add_argument("--user", "-u", default="cli", help="User id to chat as")
    chat_parser.add_argument(
        "--provider", "-p", choices=["openrouter", "openai"], help="Force a provider"
    )

    # Health command
    subparsers.add_parser("health", help="Check every configured provider")

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        run_server(args.host, args.port, args.reload)
    elif args.command == "chat":
        asyncio.run(run_chat(args.user, args.provider))
    elif args.command == "health":
        sys.exit(asyncio.run(run_health()))
    else:
        parser.print_help()
        sys.exit(1)


def run_server(host: str, port: int, reload: bool):
    """Run the web server."""
    uvicorn.run(
        "aichatbot.api:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


async def run_chat(user_id: str, provider: str = None):
    """Run an interactive chat session."""
    from .agent import BotServices, describe_error
    from .llm import (
        AIProvider,
        NoProvidersAvailableError,
        ProviderError,
        UnsupportedOperationError,
    )

    print("aichatbot Interactive Mode")
    print("=" * 40)
    print("Type 'quit' or 'exit' to exit.")
    print("Type 'clear' to delete the conversation history.")
    print()

    services = BotServices()
    await services.initialize()
    forced = AIProvider(provider) if provider else None

    try:
        while True:
            try:
                user_input = input("You: ").strip()
            except EOFError:
                break

            if not user_input:
                continue

            if user_input.lower() in ("quit", "exit"):
                print("Goodbye!")
                break

            if user_input.lower() == "clear":
                deleted = await services.chat.clear_history(user_id)
                print(f"Conversation cleared ({deleted} messages).")
                continue

            try:
                result = await services.chat.process_message(
                    user_id, user_input, provider=forced
                )
                print(
                    f"\nAssistant [{result.provider.value if result.provider else '?'}"
                    f" {result.model}, {result.tokens} tokens, ${result.cost:.4f}]:\n"
                    f"{result.content}\n"
                )
            except (ProviderError, NoProvidersAvailableError) as e:
                print(f"\nError: {describe_error(e)}\n")
            except UnsupportedOperationError as e:
                print(f"\nError: {e}\n")

    finally:
        await services.shutdown()


async def run_health() -> int:
    """Print provider health; exit code 1 when nothing is reachable."""
    from .llm import build_ai_service

    ai_service = build_ai_service(settings)
    try:
        status = await ai_service.health_check_all()
    finally:
        await ai_service.aclose()

    default = ai_service.get_default_provider().value
    for provider, healthy in status.items():
        marker = " (default)" if provider == default else ""
        print(f"{provider}{marker}: {'ok' if healthy else 'unavailable'}")

    return 0 if any(status.values()) else 1


if __name__ == "__main__":
    main()
