# Copyright 2025 TIER IV, INC. All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Sign a .pax package with an Ed25519 private key."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from paxbuild._crypto.sign_utils import (
    load_private_key,
    sign_package,
    write_signature,
)
from paxbuild_tools._utils import exit_with_err_msg

if TYPE_CHECKING:
    from argparse import ArgumentParser, Namespace, _SubParsersAction

logger = logging.getLogger(__name__)


def sign_cmd_args(
    sub_arg_parser: _SubParsersAction[ArgumentParser], *parent_parser: ArgumentParser
) -> None:
    sign_arg_parser = sub_arg_parser.add_parser(
        name="sign",
        help=(_help_txt := "Sign a .pax package"),
        description=_help_txt,
        parents=parent_parser,
    )
    sign_arg_parser.add_argument(
        "--key",
        "-k",
        help="Hex-encoded Ed25519 private key file.",
        required=True,
    )
    sign_arg_parser.add_argument(
        "--output",
        "-o",
        help="Where to save the signature. Default to <package>.sig.",
    )
    sign_arg_parser.add_argument(
        "package",
        help="Path to the .pax package.",
    )
    sign_arg_parser.set_defaults(handler=sign_cmd)


def sign_cmd(args: Namespace) -> None:
    logger.debug(f"calling {sign_cmd.__name__} with {args}")
    package = Path(args.package)
    if not package.is_file():
        exit_with_err_msg(f"{package} is not a file.")

    print(f"Signing {package} with key {args.key} ...")
    try:
        _priv_key = load_private_key(Path(args.key))
        signature = sign_package(package, _priv_key)
        _sig_f = write_signature(
            package, signature, Path(args.output) if args.output else None
        )
    except (ValueError, OSError) as e:
        logger.debug(f"failed to sign package: {e!r}", exc_info=e)
        exit_with_err_msg(f"failed to sign {package}: {e}")

    print(f"Signature saved to: {_sig_f}")
    print(f"Signature: {signature.hex()}")
