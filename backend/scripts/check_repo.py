#!/usr/bin/env python3
"""
Command-line checker for repository URLs.

Parses each URL and prints the identifier it resolves to. With --analyze the
full detection pipeline runs and the API response body is printed as JSON.
"""

import asyncio
import argparse
import json
import logging
import os
import sys
from typing import List, Optional

# Add the backend directory to the path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from stackscout.analyzer import RepoAnalyzer, build_response
from stackscout.config import Settings
from stackscout.errors import AnalysisError
from stackscout.url_parser import parse_repo_url


def describe(url: str) -> bool:
    """Print the parsed identifier for one URL."""
    try:
        identifier = parse_repo_url(url)
    except AnalysisError as e:
        print(f"✗ {url}: {e.message}")
        return False

    print(f"✓ {url}")
    print(f"    platform: {identifier.platform.value}")
    print(f"    host:     {identifier.host}")
    print(f"    owner:    {identifier.owner}")
    if identifier.project:
        print(f"    project:  {identifier.project}")
    print(f"    repo:     {identifier.repo}")
    return True


async def analyze(urls: List[str], token: Optional[str] = None) -> bool:
    settings = Settings.from_env()
    analyzer = RepoAnalyzer.from_settings(settings)

    all_ok = True
    for url in urls:
        try:
            result = await analyzer.analyze(url, token)
        except AnalysisError as e:
            print(json.dumps({"url": url, **e.to_problem()}, indent=2))
            all_ok = False
            continue
        body = build_response(result, url).model_dump(by_alias=True, mode="json")
        print(json.dumps(body, indent=2))
    return all_ok


async def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(description='StackScout repository checker')
    parser.add_argument('urls', nargs='+', help='Repository URLs to check')
    parser.add_argument('--analyze', '-a', action='store_true', help='Fetch the repository and detect its stack')
    parser.add_argument('--token', '-t', help='Access token for private repositories')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        if args.analyze:
            success = await analyze(args.urls, args.token)
        else:
            success = all([describe(url) for url in args.urls])
        return 0 if success else 1

    except KeyboardInterrupt:
        print("\nOperation cancelled")
        return 1


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
