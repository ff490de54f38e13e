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
"""Ed25519 signing of .pax packages.

The signature covers the raw bytes of the compressed package file, and is stored
    as a detached sidecar file `<package>.sig`.

Keys are stored as hex-encoded raw 32 bytes Ed25519 keys.
"""

from __future__ import annotations

import logging
from pathlib import Path

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
)

from paxbuild.consts import SIGNATURE_EXT
from paxbuild.errors import SignatureInvalid

logger = logging.getLogger(__name__)

ED25519_KEY_LEN = 32


def _read_hex_key(fpath: Path) -> bytes:
    try:
        _raw = bytes.fromhex(fpath.read_text(encoding="utf-8").strip())
    except ValueError as e:
        raise ValueError(f"{fpath} is not a hex-encoded key: {e}") from e

    if len(_raw) != ED25519_KEY_LEN:
        raise ValueError(
            f"invalid Ed25519 key length in {fpath}: "
            f"expect {ED25519_KEY_LEN} bytes, get {len(_raw)}"
        )
    return _raw


def load_private_key(fpath: Path) -> Ed25519PrivateKey:
    return Ed25519PrivateKey.from_private_bytes(_read_hex_key(fpath))


def load_public_key(fpath: Path) -> Ed25519PublicKey:
    return Ed25519PublicKey.from_public_bytes(_read_hex_key(fpath))


def generate_key_pair() -> tuple[bytes, bytes]:
    """Generate a new Ed25519 key pair, returns (private_key, public_key) raw bytes."""
    _priv_key = Ed25519PrivateKey.generate()
    return (
        _priv_key.private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption()),
        _priv_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw),
    )


def save_key_pair(
    private_key_path: Path, public_key_path: Path, *, force: bool = False
) -> tuple[Path, Path]:
    """Generate a new key pair and save them as hex-encoded key files.

    Raises:
        FileExistsError if any of the key files exists and <force> is not set.
    """
    if not force:
        for _fpath in (private_key_path, public_key_path):
            if _fpath.exists():
                raise FileExistsError(f"key file already exists: {_fpath}")

    _priv_key, _pub_key = generate_key_pair()
    private_key_path.write_text(_priv_key.hex(), encoding="utf-8")
    public_key_path.write_text(_pub_key.hex(), encoding="utf-8")
    return private_key_path, public_key_path


def sign_package(package_path: Path, private_key: Ed25519PrivateKey) -> bytes:
    return private_key.sign(package_path.read_bytes())


def signature_path_of(package_path: Path) -> Path:
    return package_path.with_name(f"{package_path.name}{SIGNATURE_EXT}")


def write_signature(
    package_path: Path, signature: bytes, output: Path | None = None
) -> Path:
    """Write <signature> as raw bytes, by default to `<package_path>.sig`."""
    output = output if output else signature_path_of(package_path)
    output.write_bytes(signature)
    return output


def verify_package_signature(
    package_path: Path, signature: bytes, public_key: Ed25519PublicKey
) -> None:
    """Verify <signature> against the raw bytes of the package file.

    Raises:
        SignatureInvalid if the signature doesn't match.
    """
    try:
        public_key.verify(signature, package_path.read_bytes())
    except InvalidSignature as e:
        logger.debug(f"failed to verify {package_path}: {e!r}", exc_info=e)
        raise SignatureInvalid(
            f"signature verification failed for {package_path.name}"
        ) from e
