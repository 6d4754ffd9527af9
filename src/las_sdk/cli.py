"""
Command-line interface for the LAS Python SDK
Signs requests and runs document workflows against the API
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .api_client import ApiClient
from .credentials import Credentials, resolve_credentials
from .exceptions import LasSDKError
from .signing import sign_request
from .version import __version__

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog='las-cli',
        description='Command-line interface for Lucidtech AI Services'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'LAS Python SDK {__version__}'
    )
    parser.add_argument('--endpoint', help='API endpoint (default: $LAS_ENDPOINT or the demo endpoint)')
    parser.add_argument('--credentials-path', help='Credentials file (default: ~/.lucidtech/credentials.cfg)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    sign_parser = subparsers.add_parser('sign', help='Print signed headers for a request')
    sign_parser.add_argument('method', help='HTTP method')
    sign_parser.add_argument('url', help='Absolute request URL')
    sign_parser.add_argument('--body', default='', help='Request body')

    predict_parser = subparsers.add_parser('predict', help='Upload a document and run inference')
    predict_parser.add_argument('document_path', help='Path to a jpeg or pdf document')
    predict_parser.add_argument('--model-name', required=True, help='Model to run, e.g. invoice')
    predict_parser.add_argument('--consent-id', default='default', help='Consent id of the document owner')

    feedback_parser = subparsers.add_parser('feedback', help='Send ground truth for a document')
    feedback_parser.add_argument('document_id', help='Document id')
    feedback_parser.add_argument(
        '--feedback',
        required=True,
        help='JSON list, e.g. \'[{"label": "total_amount", "value": "54.50"}]\''
    )

    revoke_parser = subparsers.add_parser('revoke', help='Revoke consent and delete its documents')
    revoke_parser.add_argument('consent_id', help='Consent id')

    batches_parser = subparsers.add_parser('batches', help='Batch commands')
    batches_subparsers = batches_parser.add_subparsers(dest='batches_command', help='Batch commands')
    create_batch_parser = batches_subparsers.add_parser('create', help='Create a batch')
    create_batch_parser.add_argument('description', help='Description of the batch')

    return parser


def load_credentials(args) -> Credentials:
    """Credentials from --credentials-path if given, otherwise resolved."""
    if args.credentials_path:
        return Credentials.from_file(args.credentials_path)
    return resolve_credentials()


def create_client(args) -> ApiClient:
    return ApiClient(endpoint=args.endpoint, credentials=load_credentials(args))


def print_json(data) -> None:
    print(json.dumps(data, indent=2))


def handle_sign_command(args) -> int:
    result = sign_request(load_credentials(args), args.method, args.url, args.body)
    print_json(result.headers)
    return 0


def handle_predict_command(args) -> int:
    with create_client(args) as client:
        prediction = client.predict(args.document_path, args.model_name, args.consent_id)
    print(prediction.to_json(indent=2))
    return 0


def handle_feedback_command(args) -> int:
    try:
        feedback = json.loads(args.feedback)
    except ValueError as e:
        print(f"Error: --feedback is not valid JSON: {e}", file=sys.stderr)
        return 1

    if not isinstance(feedback, list):
        print("Error: --feedback must be a JSON list", file=sys.stderr)
        return 1

    with create_client(args) as client:
        response = client.send_feedback(args.document_id, feedback)
    print(response.to_json(indent=2))
    return 0


def handle_revoke_command(args) -> int:
    with create_client(args) as client:
        response = client.revoke_consent(args.consent_id)
    print(response.to_json(indent=2))
    return 0


def handle_batches_command(args) -> int:
    if args.batches_command != 'create':
        print("Error: No batches subcommand specified", file=sys.stderr)
        return 1

    with create_client(args) as client:
        response = client.post_batches(args.description)
    print_json(response)
    return 0


COMMANDS = {
    'sign': handle_sign_command,
    'predict': handle_predict_command,
    'feedback': handle_feedback_command,
    'revoke': handle_revoke_command,
    'batches': handle_batches_command,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    if argv is None:
        argv = sys.argv[1:]

    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    handler = COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        return handler(args)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130
    except LasSDKError as e:
        logger.debug(f"{args.command} failed: {e!r}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
