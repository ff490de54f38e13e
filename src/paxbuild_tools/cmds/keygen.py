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
"""Generate a new Ed25519 key pair for package signing."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from paxbuild._crypto.sign_utils import save_key_pair
from paxbuild_tools._utils import exit_with_err_msg

if TYPE_CHECKING:
    from argparse import ArgumentParser, Namespace, _SubParsersAction

logger = logging.getLogger(__name__)


def keygen_cmd_args(
    sub_arg_parser: _SubParsersAction[ArgumentParser], *parent_parser: ArgumentParser
) -> None:
    keygen_arg_parser = sub_arg_parser.add_parser(
        name="keygen",
        help=(_help_txt := "Generate a new Ed25519 key pair"),
        description=_help_txt,
        parents=parent_parser,
    )
    keygen_arg_parser.add_argument(
        "--private",
        help="Path for the private key file.",
        required=True,
    )
    keygen_arg_parser.add_argument(
        "--public",
        help="Path for the public key file.",
        required=True,
    )
    keygen_arg_parser.add_argument(
        "--force",
        "-f",
        action="store_true",
        help="Overwrite existing key files.",
    )
    keygen_arg_parser.set_defaults(handler=keygen_cmd)


def keygen_cmd(args: Namespace) -> None:
    logger.debug(f"calling {keygen_cmd.__name__} with {args}")
    try:
        _priv_f, _pub_f = save_key_pair(
            Path(args.private), Path(args.public), force=args.force
        )
    except FileExistsError as e:
        exit_with_err_msg(f"{e}, use --force to overwrite.")
    except OSError as e:
        exit_with_err_msg(f"failed to save key pair: {e}")

    print("Key pair generated successfully!")
    print(f"Private key: {_priv_f}")
    print(f"Public key: {_pub_f}")
