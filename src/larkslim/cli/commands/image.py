"""Image upload CLI command."""

from __future__ import annotations

import argparse
from pathlib import Path

from ...api import LarkAPI
from ...core.exceptions import LarkError
from .. import base


def _process(api: LarkAPI, args: argparse.Namespace, key: str) -> bool:
    """Optionally send the uploaded image, then print its key."""
    ok = True
    if args.send:
        try:
            api.send_image_message(args.send, key)
        except (LarkError, ValueError) as exc:
            base.print_error(exc)
            ok = False
    print(key)
    return ok


def cmd_upload_image(args: argparse.Namespace) -> int:
    """Upload images from files or stdin and print their keys.

    Per-file failures are reported and skipped; the exit code is 1 if any
    occurred.
    """
    if args.type not in ("message", "avatar"):
        base.print_error("unknown image type")
        return 1

    try:
        api = base.create_api(args)
    except base.CredentialError as exc:
        base.print_error(exc)
        return 1

    has_errors = False
    with api:
        if not args.files:
            try:
                key = api.upload_image(base.read_stdin_bytes(), args.type)
            except LarkError as exc:
                base.print_error(exc)
                return 1
            return 0 if _process(api, args, key) else 1

        for name in args.files:
            path = Path(name)
            try:
                data = path.read_bytes()
                key = api.upload_image(data, args.type, filename=path.name)
            except (OSError, LarkError) as exc:
                has_errors = True
                base.print_error(exc)
                continue
            if not _process(api, args, key):
                has_errors = True

    return 1 if has_errors else 0
