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

from __future__ import annotations

from pathlib import Path

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from paxbuild._crypto.sign_utils import (
    generate_key_pair,
    load_private_key,
    load_public_key,
    save_key_pair,
    sign_package,
    signature_path_of,
    verify_package_signature,
    write_signature,
)
from paxbuild.errors import SignatureInvalid


@pytest.fixture
def key_files(tmp_path: Path) -> tuple[Path, Path]:
    return save_key_pair(tmp_path / "pax.key", tmp_path / "pax.pub")


@pytest.fixture
def package(tmp_path: Path) -> Path:
    _package = tmp_path / "foo-1.0-x86_64.pax"
    _package.write_bytes(b"pretend this is a zstd compressed tar" * 16)
    return _package


class TestKeys:
    def test_generate_key_pair(self):
        _priv, _pub = generate_key_pair()
        assert len(_priv) == len(_pub) == 32
        assert generate_key_pair()[0] != _priv

    def test_save_and_load_key_pair(self, key_files: tuple[Path, Path]):
        _priv_f, _pub_f = key_files
        # hex-encoded raw keys
        assert len(_priv_f.read_text()) == len(_pub_f.read_text()) == 64

        _priv_key = load_private_key(_priv_f)
        _pub_key = load_public_key(_pub_f)
        assert isinstance(_priv_key, Ed25519PrivateKey)
        assert isinstance(_pub_key, Ed25519PublicKey)
        assert _priv_key.public_key().public_bytes(
            Encoding.Raw, PublicFormat.Raw
        ) == _pub_key.public_bytes(Encoding.Raw, PublicFormat.Raw)

    def test_save_key_pair_no_overwrite(self, key_files: tuple[Path, Path]):
        _priv_f, _pub_f = key_files
        _priv_raw = _priv_f.read_text()

        with pytest.raises(FileExistsError):
            save_key_pair(_priv_f, _pub_f)
        assert _priv_f.read_text() == _priv_raw

        save_key_pair(_priv_f, _pub_f, force=True)
        assert _priv_f.read_text() != _priv_raw

    def test_load_key_with_trailing_newline(self, tmp_path: Path):
        _priv, _ = generate_key_pair()
        _key_f = tmp_path / "pax.key"
        _key_f.write_text(f"{_priv.hex()}\n")

        load_private_key(_key_f)

    @pytest.mark.parametrize(
        "contents",
        (
            "not hex at all",
            "abcd",
            "00" * 33,
        ),
    )
    def test_load_invalid_key(self, tmp_path: Path, contents):
        _key_f = tmp_path / "pax.key"
        _key_f.write_text(contents)

        with pytest.raises(ValueError):
            load_private_key(_key_f)
        with pytest.raises(ValueError):
            load_public_key(_key_f)


class TestSignPackage:
    def test_sign_and_verify(self, package: Path, key_files: tuple[Path, Path]):
        _priv_f, _pub_f = key_files

        signature = sign_package(package, load_private_key(_priv_f))
        assert len(signature) == 64

        _sig_f = write_signature(package, signature)
        assert _sig_f == package.parent / "foo-1.0-x86_64.pax.sig"
        assert _sig_f == signature_path_of(package)
        assert _sig_f.read_bytes() == signature

        verify_package_signature(package, _sig_f.read_bytes(), load_public_key(_pub_f))

    def test_write_signature_to_custom_path(self, package: Path, tmp_path: Path):
        _output = tmp_path / "custom.sig"
        assert write_signature(package, b"sig", _output) == _output
        assert _output.read_bytes() == b"sig"

    def test_tampered_package(self, package: Path, key_files: tuple[Path, Path]):
        _priv_f, _pub_f = key_files
        signature = sign_package(package, load_private_key(_priv_f))

        package.write_bytes(package.read_bytes() + b"tampered")

        with pytest.raises(SignatureInvalid):
            verify_package_signature(package, signature, load_public_key(_pub_f))

    def test_wrong_public_key(self, package: Path, key_files, tmp_path: Path):
        _priv_f, _ = key_files
        _, _other_pub_f = save_key_pair(tmp_path / "other.key", tmp_path / "other.pub")
        signature = sign_package(package, load_private_key(_priv_f))

        with pytest.raises(SignatureInvalid):
            verify_package_signature(
                package, signature, load_public_key(_other_pub_f)
            )
