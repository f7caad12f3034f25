#!/usr/bin/env python3
"""
Create the public storage symlink without starting the web application.

Links <document root>/public/storage to <document root>/storage/app/public.
"""

import argparse
import logging
import os
import sys
from pathlib import Path

# Add the parent directory to the path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from classifieds.utils.storage_link import (  # noqa: E402
    StorageLinkError, link_public_storage, render_failure, render_report
)


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Create the public storage symlink",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s
  %(prog)s --document-root /var/www/classifieds
  %(prog)s --force --html
        """
    )
    parser.add_argument('--document-root', default=os.environ.get('DOCUMENT_ROOT', '.'),
                        help='Document root holding storage/ and public/ (default: $DOCUMENT_ROOT or .)')
    parser.add_argument('--force', action='store_true',
                        help='Replace an existing symlink that points somewhere else')
    parser.add_argument('--html', action='store_true',
                        help='Separate report lines with <br> instead of newlines')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable verbose logging')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    try:
        result = link_public_storage(args.document_root, force=args.force)
    except StorageLinkError as e:
        print(render_failure(e, html=args.html))
        return 1
    print(render_report(result, html=args.html))
    return 0


if __name__ == "__main__":
    sys.exit(main())
