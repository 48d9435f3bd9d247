"""CLI entry point for the assistant stream service."""

import argparse
import asyncio
import json
import sys
from typing import Optional

from .config.models import CHAT_MODELS, DEFAULT_CHAT_MODEL, resolve_chat_model
from .config.settings import load_settings
from .core.pricing.catalog import CatalogCache, UsageEnricher
from .providers.openai.adapter import OpenAIResponsesProvider
from .providers.openai.payloads import build_responses_request, build_turn_input, build_user_content
from .streaming.orchestrator import StreamOrchestrator
from .streaming.sse import to_sse


async def stream_turn(prompt: str, model: Optional[str] = None, raw: bool = False):
    """Run one turn and print its protocol events (or SSE frames)."""
    settings = load_settings()
    model = model or settings.chat_model
    provider = OpenAIResponsesProvider(settings)
    enricher = UsageEnricher(
        CatalogCache.from_url(settings.model_catalog_url, settings.model_catalog_ttl_seconds)
    )

    payload = build_responses_request(
        model=resolve_chat_model(model),
        input=build_turn_input([], build_user_content(prompt)),
        instructions=settings.system_prompt,
        prompt_id=settings.openai_prompt_id,
    )
    orchestrator = StreamOrchestrator(
        opener=lambda: provider.open_stream(payload),
        enricher=enricher,
    )

    try:
        if raw:
            async for frame in to_sse(orchestrator.events()):
                print(frame, end='', flush=True)
        else:
            async for event in orchestrator.events():
                print(json.dumps(event.to_dict(), ensure_ascii=False), flush=True)
    except Exception as e:
        print(f"Error: {str(e)}")
        return 1
    return 0


async def show_catalog():
    """Print the pricing catalog (remote when MODEL_CATALOG_URL is set)."""
    settings = load_settings()
    catalog = await CatalogCache.from_url(settings.model_catalog_url).get()

    print(f"Model catalog ({catalog.source}, {len(catalog)} models):")
    print("-" * 50)
    for model_id, pricing in sorted(catalog.models().items()):
        print(f"{model_id}")
        print(f"   Input: ${pricing.input_cost_per_1m_tokens}/1M tokens, Output: ${pricing.output_cost_per_1m_tokens}/1M tokens")
        if pricing.context_window:
            print(f"   Context window: {pricing.context_window}")
    return 0


def main():
    """Main CLI function."""
    parser = argparse.ArgumentParser(description="Assistant stream CLI")
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Stream command
    stream_parser = subparsers.add_parser('stream', help='Stream one assistant turn')
    stream_parser.add_argument('prompt', help='Text prompt')
    stream_parser.add_argument('--model', choices=sorted(CHAT_MODELS),
                               help=f"Chat model id (default: ASSISTANT_CHAT_MODEL or {DEFAULT_CHAT_MODEL})")
    stream_parser.add_argument('--raw', action='store_true', help='Print SSE frames instead of events')

    # Catalog command
    subparsers.add_parser('catalog', help='Show model pricing catalog')

    args = parser.parse_args()

    if args.command == 'stream':
        return asyncio.run(stream_turn(args.prompt, args.model, args.raw))
    elif args.command == 'catalog':
        return asyncio.run(show_catalog())
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
