"""
Command-line interface for Monarch Python SDK
Shows the authentication headers a request would carry, or signs and sends it
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from . import initialize_sdk, __version__
from .config import AuthConfigManager
from .exceptions import MonarchSDKError, ServerCommunicationError
from .http_client import ClientConfig, RestClient, RestRequest
from .signing import (
    ApiKeyStrategy,
    BasicAuthStrategy,
    HttpMethod,
    MacAuthStrategy,
    SigningChain,
)
from .tokens import StaticAccessTokenSource

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog='monarch-sign',
        description='Monarch SDK command-line interface for authenticating API requests'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'Monarch Python SDK {__version__}'
    )

    parser.add_argument(
        '--check-compatibility',
        action='store_true',
        help='Check platform compatibility and exit'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    headers_parser = subparsers.add_parser('headers', help='Print the headers a signed request would carry')
    setup_request_arguments(headers_parser)
    headers_parser.add_argument('--json', action='store_true', help='Print headers as a JSON object')

    send_parser = subparsers.add_parser('send', help='Sign and send a request')
    setup_request_arguments(send_parser)
    send_parser.add_argument('--timeout', type=float, default=30.0, help='Request timeout in seconds (default: 30)')
    send_parser.add_argument('--insecure', action='store_true', help='Skip TLS certificate verification')

    return parser


def setup_request_arguments(parser: argparse.ArgumentParser) -> None:
    """Setup request and credential options shared by headers and send."""
    parser.add_argument('--url', required=True, help='Absolute request URL, query string included')
    parser.add_argument(
        '--method',
        type=str.upper,
        choices=[m.value for m in HttpMethod],
        default='GET',
        help='HTTP method (default: GET)'
    )
    parser.add_argument('--body', help='Request body')
    parser.add_argument('--content-type', help='Content-Type of the body')

    scheme = parser.add_mutually_exclusive_group(required=True)
    scheme.add_argument('--api-key', help='Authenticate with a static API key')
    scheme.add_argument('--basic', metavar='USER:PASS', help='Authenticate with HTTP Basic credentials')
    scheme.add_argument('--hawk-id', help='Authenticate with a Hawk MAC signature using this key id')
    scheme.add_argument('--config', help='Load authentication schemes from a configuration file')

    parser.add_argument('--environment', help='Configuration environment (with --config)')
    parser.add_argument('--bearer-token', help='Delegated access token (with --api-key or --hawk-id)')
    parser.add_argument('--hawk-secret', help='Hawk shared secret')
    parser.add_argument('--algorithm', default='sha256', help='Hawk HMAC algorithm (default: sha256)')
    parser.add_argument(
        '--no-payload-verification',
        action='store_true',
        help='Do not bind the body into the Hawk signature'
    )
    parser.add_argument('--ext', help='Hawk application extension data')


def build_signing_chain(args, parser: argparse.ArgumentParser) -> SigningChain:
    """Build the signing chain selected on the command line."""
    token_source = StaticAccessTokenSource(args.bearer_token) if args.bearer_token else None

    if args.config:
        manager = AuthConfigManager.from_file(args.config, args.environment)
        if not args.verbose:
            logging.getLogger("monarch_sdk").setLevel(manager.get_logging_config().level)
        return manager.to_signing_chain(token_source)

    if args.api_key:
        return SigningChain([ApiKeyStrategy(args.api_key, token_source)])

    if args.basic:
        if ':' not in args.basic:
            parser.error('--basic expects USER:PASS')
        username, password = args.basic.split(':', 1)
        return SigningChain([BasicAuthStrategy(username, password)])

    if not args.hawk_secret:
        parser.error('--hawk-id requires --hawk-secret')

    return SigningChain([
        MacAuthStrategy(
            key_id=args.hawk_id,
            shared_secret=args.hawk_secret,
            algorithm=args.algorithm,
            access_token_source=token_source,
            verify_payload=not args.no_payload_verification,
            ext=args.ext,
        )
    ])


def build_request(args) -> RestRequest:
    request = RestRequest(args.method, args.url)
    if args.body is not None:
        request.set_body(args.body)
    if args.content_type:
        request.content_type(args.content_type)
    return request


def handle_headers_command(args, parser: argparse.ArgumentParser) -> int:
    """Handle printing of signed request headers."""
    chain = build_signing_chain(args, parser)
    view = build_request(args).to_request_view()
    chain.apply(view)

    headers = view.headers.to_dict()
    if args.json:
        print(json.dumps(headers, indent=2))
    else:
        for name, value in headers.items():
            print(f"{name}: {value}")
    return 0


def handle_send_command(args, parser: argparse.ArgumentParser) -> int:
    """Handle signing and sending a request."""
    chain = build_signing_chain(args, parser)
    config = ClientConfig(base_url=args.url, timeout=args.timeout, verify_ssl=not args.insecure)

    with RestClient(config, chain) as client:
        request = build_request(args)
        response = client.send(request)

    print(f"HTTP {response.status_code}")
    if response.body:
        print(response.body)
    return 0 if response.ok else 1


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s %(name)s %(levelname)s %(message)s'
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI

    Args:
        argv: Command line arguments (None to use sys.argv)

    Returns:
        int: Exit code (0 for success, non-zero for failure)
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = create_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        if args.check_compatibility:
            result = initialize_sdk()
            if result['compatible']:
                print("✓ Platform is compatible with Monarch SDK")
                for warning in result['warnings']:
                    print(f"  Warning: {warning}")
                return 0
            else:
                print("✗ Platform is not compatible with Monarch SDK")
                for warning in result['warnings']:
                    print(f"  Error: {warning}")
                return 1

        if args.command == 'headers':
            return handle_headers_command(args, parser)
        elif args.command == 'send':
            return handle_send_command(args, parser)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130
    except ServerCommunicationError as e:
        print(f"Server communication error: {e}", file=sys.stderr)
        return 1
    except MonarchSDKError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
