"""Text message CLI command."""

from __future__ import annotations

import argparse

from ...core.exceptions import LarkError
from .. import base


def cmd_msg(args: argparse.Namespace) -> int:
    """Send text from arguments (joined by spaces) or stdin.

    Args:
        args: Parsed arguments

    Returns:
        Exit code
    """
    try:
        api = base.create_api(args)
    except base.CredentialError as exc:
        base.print_error(exc)
        return 1

    if args.text:
        content = " ".join(args.text)
    else:
        base.err_console.print("Reading from stdin...", markup=False)
        content = base.read_stdin_text()

    with api:
        try:
            api.send_message(args.target, content)
        except (LarkError, ValueError) as exc:
            base.print_error(exc)
            return 1
    return 0
