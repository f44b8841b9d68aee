"""Example usage of BookSearchService with a JSON input file.

This script reads search parameters from a JSON file, warms the search
cache and runs the search twice so the second answer comes from the cache.

Prerequisites:
    1. A PostgREST/Supabase instance exposing the books table
    2. Virtual environment activated with dependencies installed

JSON format:
    {
        "api_url": "http://localhost:54321",
        "api_key": "",
        "query": "search query here",
        "category": "Fiction",
        "tags": ["classic"],
        "price_range": [0, 25],
        "limit": 20
    }

Usage:
    cd ..
    python _examples/example.py [path_to_input.json]

Example:
    python example.py                 # Uses default example_in.json
    python example.py myinput.json    # Uses custom JSON file
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Tuple

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from book_search_service import BookSearchService, describe_outcome
from search_cache import SearchRequest
from search_config import SEARCH_CACHE_CONFIG_DEVELOPMENT, SearchCacheConfig

class Colors:
    YELLOW = "\033[33m"
    CYAN = "\033[36m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_CYAN = "\033[96m"
    DIM = "\033[2m"
    RESET = "\033[0m"

logging.basicConfig(
    level=logging.DEBUG,
    format= Colors.DIM + '%(asctime)s [%(levelname)s] ◦ %(name)s ◦ %(message)s' + Colors.RESET,
    handlers=[
        logging.StreamHandler()
    ]
)

logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


def parse_prompt_file(filepath: str) -> Tuple[SearchCacheConfig, SearchRequest]:
    """Parse JSON input file into a configuration and a search request.

    Args:
        filepath: Path to the JSON input file

    Returns:
        (config, request) tuple
    """
    with open(filepath, 'r', encoding='utf-8') as f:
        data: Dict[str, Any] = json.load(f)

    if not isinstance(data, dict):
        raise ValueError("JSON input must be an object")

    config = SearchCacheConfig(
        default_ttl_seconds=SEARCH_CACHE_CONFIG_DEVELOPMENT.default_ttl_seconds,
        max_cache_size=SEARCH_CACHE_CONFIG_DEVELOPMENT.max_cache_size,
        enable_logging=True,
        search_api_url=data.get("api_url", SEARCH_CACHE_CONFIG_DEVELOPMENT.search_api_url),
        search_api_key=data.get("api_key", ""),
    )

    price_range = data.get("price_range")
    request = SearchRequest(
        query=data.get("query"),
        category=data.get("category"),
        tags=data.get("tags"),
        price_range=tuple(price_range) if price_range else None,
        is_free=data.get("is_free"),
        limit=data.get("limit", 20),
        offset=data.get("offset"),
        sort_by=data.get("sort_by"),
        sort_order=data.get("sort_order"),
    )
    return config, request


def print_tool_call(tool_name: str, request: SearchRequest) -> None:
    """Print tool call in the specified format."""
    params_str = json.dumps({k: v for k, v in vars(request).items() if v is not None}, ensure_ascii=False)
    print(f"🛠️  {Colors.YELLOW}tool → → → ◦ [{tool_name}] ◦ {Colors.BRIGHT_YELLOW}{params_str}{Colors.RESET}")


def print_tool_response(tool_name: str, response: Dict[str, Any]) -> None:
    """Print tool response in the specified format."""
    print(f"📄 {Colors.CYAN}tool ← ← ← ◦ [{tool_name}] ◦")
    pretty_data = json.dumps(response, indent=2, ensure_ascii=False, default=str)
    print(f"{Colors.BRIGHT_CYAN}{pretty_data}{Colors.RESET}")


async def run(config: SearchCacheConfig, request: SearchRequest) -> None:
    service = BookSearchService.from_config(config)

    print("⚙️  Warming up search cache...")
    report = await service.warmup_search_cache()
    print(f"✅ Warmup: {report.succeeded} fetched, {report.failed} failed")
    print()

    for attempt in (1, 2):
        print_tool_call('search_books', request)
        outcome = await service.search_books(request)
        print_tool_response('search_books', describe_outcome(outcome))
        print(f"   attempt {attempt}: {'cache hit' if outcome.cached else 'backend'}")
        print()

    print(f"📊 Cache stats: {json.dumps(service.get_cache_stats().to_dict())}")


def main():
    if len(sys.argv) > 1:
        input_file = sys.argv[1]
    else:
        input_file = "example_in.json"

    input_path = Path(input_file)

    if not input_path.exists():
        print(f"❌ Input file not found: {input_file}")
        print()
        print("Create a JSON file with the following format:")
        print("-" * 40)
        print(json.dumps({
            "api_url": "http://localhost:54321",
            "api_key": "",
            "query": "search query here",
            "category": "Fiction",
            "limit": 20
        }, indent=4))
        print("-" * 40)
        sys.exit(1)

    print("=" * 60)
    print("Bookstore Search Cache")
    print("=" * 60)
    print()

    try:
        config, request = parse_prompt_file(str(input_path))
    except Exception as e:
        print(f"❌ Error parsing input file: {e}")
        sys.exit(1)

    asyncio.run(run(config, request))


if __name__ == "__main__":
    main()
