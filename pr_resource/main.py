"""Entry point for the resource's out (put) script."""

import argparse
import json
import logging
import sys
from typing import List, Optional, TextIO

from .errors import ResourceError
from .github_client import GitHubClient
from .models import PutRequest
from .put import put


def setup_logging(verbose: bool = False) -> None:
    """Configure logging.

    Concourse reads the response from stdout, so logs go to stderr.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)]
    )


def read_request(stream: TextIO) -> PutRequest:
    """Parse the put request Concourse writes to stdin."""
    return PutRequest.from_dict(json.load(stream))


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        description="Set a commit status and post PR comments from a Concourse put"
    )
    parser.add_argument(
        "input_dir",
        help="Directory containing the build's inputs"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )
    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        request = read_request(sys.stdin)
    except (json.JSONDecodeError, ResourceError) as e:
        logger.error(f"Failed to parse request: {e}")
        sys.exit(1)

    try:
        client = GitHubClient.from_source(request.source)
    except ValueError as e:
        logger.error(f"GitHub client initialization failed: {e}")
        sys.exit(1)

    try:
        response = put(request, client, args.input_dir)
    except ResourceError as e:
        logger.error(f"Put failed: {e}")
        sys.exit(1)

    json.dump(response.to_dict(), sys.stdout)
    sys.stdout.write("\n")
    logger.info(f"Done! Published to PR #{response.version.pr}")


if __name__ == "__main__":
    main()
