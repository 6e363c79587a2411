"""
Command-line interface for the BRIVA client.

This module provides the `briva` entry point with commands for:
- token: Obtain an access token (verifies credentials)
- create, update, update-status, inquiry, inquiry-status, delete, report:
  Call a virtual account operation with a JSON payload
- code: Look up a response code in the catalog
- config validate: Check configuration without calling the API

Exit codes: 0 on success, 1 when the bank rejected the request, 2 for local
or transport failures.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Optional, TextIO

from . import __version__
from .audit_logger import AuditLogger
from .client import BrivaClient
from .config import OUTPUT_FORMATS, ClientConfig, Credentials, LoggingConfig
from .exceptions import BrivaError, ConfigurationError, StructuredAPIResponse
from .models import (
    CreateVirtualAccountRequest,
    DeleteVirtualAccountRequest,
    InquiryVirtualAccountRequest,
    InquiryVirtualAccountStatusRequest,
    UpdateVirtualAccountRequest,
    UpdateVirtualAccountStatusRequest,
    VirtualAccountReportRequest,
)
from .response_codes import get_response_definition

EXIT_OK = 0
EXIT_API_ERROR = 1
EXIT_LOCAL_ERROR = 2

# command -> (client method, request type, help)
OPERATIONS = {
    "create": (
        "create_virtual_account",
        CreateVirtualAccountRequest,
        "Create a virtual account",
    ),
    "update": (
        "update_virtual_account",
        UpdateVirtualAccountRequest,
        "Update a virtual account",
    ),
    "update-status": (
        "update_virtual_account_status",
        UpdateVirtualAccountStatusRequest,
        "Set the paid status of a virtual account",
    ),
    "inquiry": (
        "inquiry_virtual_account",
        InquiryVirtualAccountRequest,
        "Look up a virtual account",
    ),
    "inquiry-status": (
        "inquiry_virtual_account_status",
        InquiryVirtualAccountStatusRequest,
        "Check the payment status of a virtual account",
    ),
    "delete": (
        "delete_virtual_account",
        DeleteVirtualAccountRequest,
        "Delete a virtual account",
    ),
    "report": (
        "get_virtual_account_report",
        VirtualAccountReportRequest,
        "List paid transactions in a time window",
    ),
}


def load_config_from_file(config_path: Path) -> ClientConfig:
    """
    Load client configuration from a JSON file.

    The private key may be given inline ("private_key") or as a path
    ("private_key_file", relative paths resolve against the config file).

    Raises:
        ConfigurationError: If the file cannot be read or is incomplete
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            code="parse_error",
            message=f"Failed to parse config file: {e}",
            details={"file_path": str(config_path)},
        ) from e
    except OSError as e:
        raise ConfigurationError(
            code="io_error",
            message=f"Failed to read config file: {e}",
            details={"file_path": str(config_path)},
        ) from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            code="parse_error",
            message="Config file must contain a JSON object",
            details={"file_path": str(config_path)},
        )

    private_key = data.get("private_key", "")
    key_file = data.get("private_key_file")
    if not private_key and key_file:
        key_path = Path(key_file)
        if not key_path.is_absolute():
            key_path = config_path.parent / key_path
        try:
            private_key = key_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(
                code="io_error",
                message=f"Failed to read private key file: {e}",
                details={"file_path": str(key_path)},
            ) from e

    try:
        logging_data = data.get("logging", {})
        return ClientConfig(
            credentials=Credentials(
                partner_id=data["partner_id"],
                client_id=data["client_id"],
                client_secret=data["client_secret"],
                private_key=private_key,
                channel_id=data["channel_id"],
            ),
            is_sandbox=data.get("sandbox", False),
            timeout=float(data.get("timeout", 30.0)),
            debug=data.get("debug", False),
            base_url_override=data.get("base_url"),
            verify_tls=data.get("verify_tls", True),
            logging=LoggingConfig(
                level=logging_data.get("level", "info"),
                output_format=logging_data.get("format", "text"),
            ),
        )
    except KeyError as e:
        raise ConfigurationError(
            code="missing_field",
            message=f"Config file is missing required field: {e.args[0]}",
            details={"file_path": str(config_path), "field": e.args[0]},
        ) from e


def resolve_config(args: argparse.Namespace) -> ClientConfig:
    """Build config from --config, or from the environment, then apply flags."""
    if args.config:
        config = load_config_from_file(Path(args.config))
    else:
        env_file = Path(args.env_file) if args.env_file else None
        config = ClientConfig.from_env(env_file=env_file)

    if args.sandbox:
        config.is_sandbox = True
    if args.debug:
        config.debug = True
    if config.debug:
        config.logging.level = "debug"

    try:
        config.logging.log_level
    except ValueError as e:
        raise ConfigurationError(
            code="invalid_log_level",
            message=f"Unknown log level: {config.logging.level}",
        ) from e
    if config.logging.output_format not in OUTPUT_FORMATS:
        raise ConfigurationError(
            code="invalid_log_format",
            message=f"Unknown log format: {config.logging.output_format}",
        )
    return config


def create_logger(config: ClientConfig) -> AuditLogger:
    return AuditLogger(
        output_format=config.logging.output_format,
        min_level=config.logging.log_level,
    )


def read_payload(source: Optional[str], stdin: TextIO) -> Any:
    """Read a JSON payload from a file, or from stdin when source is None or "-"."""
    try:
        if source is None or source == "-":
            return json.load(stdin)
        with open(source, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            code="parse_error",
            message=f"Payload is not valid JSON: {e}",
        ) from e
    except OSError as e:
        raise ConfigurationError(
            code="io_error",
            message=f"Failed to read payload: {e}",
            details={"file_path": source},
        ) from e


def _print_json(data: Any, stream: Optional[TextIO] = None) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False), file=stream or sys.stdout)


async def run_operation(
    config: ClientConfig,
    command: str,
    payload: Any,
    client: Optional[BrivaClient] = None,
) -> int:
    """Run one virtual account operation and print the decoded response."""
    method_name, request_type, _ = OPERATIONS[command]
    try:
        request = request_type.from_dict(payload)
    except (TypeError, ValueError) as e:
        print(f"Error: Invalid payload: {e}", file=sys.stderr)
        return EXIT_LOCAL_ERROR

    client = client or BrivaClient(config, logger=create_logger(config))
    async with client:
        try:
            response = await getattr(client, method_name)(request)
        except StructuredAPIResponse as e:
            print(str(e), file=sys.stderr)
            _print_json(e.to_dict(), sys.stderr)
            return EXIT_API_ERROR
        except BrivaError as e:
            print(f"Error: {e.message}", file=sys.stderr)
            _print_json(e.to_dict(), sys.stderr)
            return EXIT_LOCAL_ERROR

    _print_json(response.to_dict())
    return EXIT_OK


async def run_token(config: ClientConfig, client: Optional[BrivaClient] = None) -> int:
    """Obtain an access token and report its expiry (never the token itself)."""
    client = client or BrivaClient(config, logger=create_logger(config))
    async with client:
        try:
            await client.authenticate()
        except StructuredAPIResponse as e:
            print(str(e), file=sys.stderr)
            return EXIT_API_ERROR
        except BrivaError as e:
            print(f"Error: {e.message}", file=sys.stderr)
            return EXIT_LOCAL_ERROR

    result = {"authenticated": client.is_authenticated()}
    token = getattr(client.authenticator, "token", None)
    if token is not None:
        result["token_type"] = token.token_type
        result["expires_at"] = token.expires_at.isoformat()
    _print_json(result)
    return EXIT_OK


def cmd_operation(args: argparse.Namespace) -> int:
    """Handle the virtual account operation commands."""
    try:
        config = resolve_config(args)
        payload = read_payload(args.payload, sys.stdin)
    except ConfigurationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_LOCAL_ERROR

    return asyncio.run(run_operation(config, args.command, payload))


def cmd_token(args: argparse.Namespace) -> int:
    """Handle the 'token' command."""
    try:
        config = resolve_config(args)
    except ConfigurationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_LOCAL_ERROR

    return asyncio.run(run_token(config))


def cmd_code(args: argparse.Namespace) -> int:
    """Handle the 'code' command."""
    definition = get_response_definition(args.code)
    _print_json({
        "code": definition.code,
        "http_status": definition.http_status,
        "service_code": definition.response_code.service_code,
        "case_code": definition.response_code.case_code,
        "category": definition.category.value,
        "description": definition.description,
        "field": definition.field,
    })
    return EXIT_OK


def cmd_config(args: argparse.Namespace) -> int:
    """Handle the 'config' command."""
    try:
        config = resolve_config(args)
    except ConfigurationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_LOCAL_ERROR

    errors = config.validate()
    if errors:
        print("Configuration is invalid:", file=sys.stderr)
        for error in errors:
            print(f"  - {error}", file=sys.stderr)
        return EXIT_LOCAL_ERROR

    print(f"Configuration is valid (base URL: {config.base_url}).")
    return EXIT_OK


def _config_options() -> argparse.ArgumentParser:
    """Options shared by every command that needs credentials."""
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--config", "-c",
        help="Path to JSON configuration file (default: BRIVA_* environment)",
    )
    parent.add_argument(
        "--env-file",
        help="Path to a .env file to load before reading the environment",
    )
    parent.add_argument(
        "--sandbox",
        action="store_true",
        help="Use the sandbox environment",
    )
    parent.add_argument(
        "--debug",
        action="store_true",
        help="Log full HTTP requests and responses (secrets masked)",
    )
    return parent


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="briva",
        description="BRI virtual account (BRIVA) API client",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    config_options = _config_options()

    # 'token' command
    token_parser = subparsers.add_parser(
        "token",
        parents=[config_options],
        help="Obtain an access token to verify credentials",
    )
    token_parser.set_defaults(func=cmd_token)

    # Virtual account operations
    for name, (_, _, help_text) in OPERATIONS.items():
        op_parser = subparsers.add_parser(name, parents=[config_options], help=help_text)
        op_parser.add_argument(
            "payload",
            nargs="?",
            help="Path to JSON request payload (default: read stdin)",
        )
        op_parser.set_defaults(func=cmd_operation)

    # 'code' command
    code_parser = subparsers.add_parser(
        "code",
        help="Describe a response code",
    )
    code_parser.add_argument(
        "code",
        help="Seven-digit response code (e.g., 4002701)",
    )
    code_parser.set_defaults(func=cmd_code)

    # 'config' command
    config_parser = subparsers.add_parser(
        "config",
        parents=[config_options],
        help="Configuration management",
    )
    config_parser.add_argument(
        "action",
        choices=["validate"],
        help="Configuration action",
    )
    config_parser.set_defaults(func=cmd_config)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_OK

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
