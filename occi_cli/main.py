"""``occi`` CLI entrypoint: global options, settings and command dispatch."""

from __future__ import annotations

import argparse
import inspect
import logging
import sys
from dataclasses import replace
from typing import Sequence, TextIO

from occi_core.client import Client
from occi_core.config import ClientSettings, load_client_settings
from occi_core.errors import AmbiguousIdentifierError, OcciError
from occi_core.http.auth import AuthMethod

from .commands import COMMANDS

CLI_VERSION = "0.1.0"
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="occi", description="Talk to an OCCI 1.1 endpoint.")
    parser.add_argument("--version", action="version", version=f"occi v{CLI_VERSION}")
    parser.add_argument("--config", help="YAML settings file (default: user config dir).")
    parser.add_argument("--endpoint", help="Server endpoint, e.g. https://occi.example.org:11443")
    parser.add_argument(
        "--auth",
        choices=[method.value for method in AuthMethod if method is not AuthMethod.KEYSTONE],
        help="Authentication method.",
    )
    parser.add_argument("--username")
    parser.add_argument("--password")
    parser.add_argument("--certificate", help="PEM or PKCS12 user certificate / proxy.")
    parser.add_argument("--ca-path", dest="ca_path", help="Directory of trusted CA certificates.")
    parser.add_argument("--media-type", dest="media_type", help="text/plain or text/occi.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log HTTP traffic.")

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")
    subparsers.required = True
    for name, command in COMMANDS.items():
        description = (inspect.getdoc(command) or "").strip()
        sub = subparsers.add_parser(name, help=description.splitlines()[0], description=description)
        command.configure(sub)
    return parser


def main(
    argv: Sequence[str] | None = None,
    *,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    """Parse arguments, build the client and run one command."""

    out = out or sys.stdout
    err = err or sys.stderr
    parser = build_parser()
    try:
        args = parser.parse_args(list(argv) if argv is not None else None)
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 0

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format=LOG_FORMAT)

    command = COMMANDS[args.command]()
    try:
        settings = _settings(args)
        with Client.from_settings(settings) as client:
            return command.run(client, args, out)
    except AmbiguousIdentifierError as exc:
        print(
            f"'{exc.term}' is ambiguous ({', '.join(exc.candidates)}); use a full identifier.",
            file=err,
        )
        return 1
    except (OcciError, ValueError) as exc:
        print(f"error: {exc}", file=err)
        return 1


def _settings(args: argparse.Namespace) -> ClientSettings:
    settings = load_client_settings(args.config)
    endpoint = args.endpoint or settings.endpoint
    if not endpoint:
        raise ValueError("no endpoint given; use --endpoint or the settings file")

    config = settings.config
    if args.media_type:
        config = replace(config, media_type=args.media_type)
    if args.ca_path:
        config = replace(config, ca_path=args.ca_path, ca_file=None)

    overrides = {
        key: value
        for key, value in (
            ("method", args.auth),
            ("username", args.username),
            ("password", args.password),
            ("certificate", args.certificate),
        )
        if value is not None
    }
    auth = replace(settings.auth, **overrides) if overrides else settings.auth
    return ClientSettings(endpoint=endpoint, config=config, auth=auth)
