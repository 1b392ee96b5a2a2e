# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors

"""
Basic Usage Example

Builds the web evidence block for a question and prints it the way the
generation step would receive it.
"""

import asyncio

from webrag_core.config import WebRagConfig
from webrag_core.engine import WebRagEngine


async def main():
    # Keys and tuning come from the environment (TAVILY_API_KEY, RAG_*).
    config = WebRagConfig.from_env()

    async with WebRagEngine(config) as engine:
        print("Gathering web evidence...")
        result = await engine.build_context("What changed in the latest Python release?")

    if result is None:
        print("No web evidence available; answer without grounding.")
        return

    print("\n" + "=" * 60)
    print("CONTEXT")
    print("=" * 60)
    print(result.context)

    print(f"\n🔗 Sources ({len(result.sources)}):")
    for source in result.sources:
        print(f"  [{source.id}] {source.title}")
        print(f"      {source.url}")


if __name__ == "__main__":
    asyncio.run(main())
