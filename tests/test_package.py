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

import hashlib
import io
import tarfile
from pathlib import Path

import pytest
import zstandard

from paxbuild.builder import PackageAssembler
from paxbuild.consts import METADATA_FNAME
from paxbuild.errors import (
    ExtractionFailed,
    MetadataInvalid,
    MetadataMissing,
    PackageNotFound,
)
from paxbuild.package import PaxPackage


def write_pax(dst: Path, members: dict[str, bytes]) -> Path:
    """Write a .pax package with arbitrary <members>."""
    _buf = io.BytesIO()
    with tarfile.open(fileobj=_buf, mode="w", format=tarfile.PAX_FORMAT) as _tar:
        for _name, _contents in members.items():
            _tarinfo = tarfile.TarInfo(_name)
            _tarinfo.size = len(_contents)
            _tar.addfile(_tarinfo, io.BytesIO(_contents))
    dst.write_bytes(zstandard.ZstdCompressor().compress(_buf.getvalue()))
    return dst


@pytest.fixture
def package(recipe_factory, tmp_path: Path) -> Path:
    _install_root = tmp_path / "install"
    (_install_root / "usr" / "bin").mkdir(parents=True)
    _bin = _install_root / "usr" / "bin" / "hello"
    _bin.write_bytes(b"#!/bin/sh\necho hello\n")
    _bin.chmod(0o755)
    (_install_root / "README").write_text("readme")

    return PackageAssembler(zstd_compression_level=3).assemble(
        recipe_factory(), "x86_64", _install_root, tmp_path / "out"
    )


class TestPaxPackageOpen:
    def test_open_not_existed(self, tmp_path: Path):
        with pytest.raises(PackageNotFound) as exc_info:
            PaxPackage.open(tmp_path / "not_existed.pax")
        assert exc_info.value.path == tmp_path / "not_existed.pax"

    def test_package_file_info(self, package: Path):
        with PaxPackage.open(package) as pkg:
            assert pkg.filename() == "hello-1.0-x86_64.pax"
            assert pkg.parse_package_info() == ("hello", "1.0", "x86_64")
            assert pkg.size() == package.stat().st_size
            assert pkg.calculate_hash() == (
                hashlib.sha256(package.read_bytes()).hexdigest()
            )

    def test_parse_package_info_unparsable(self, package: Path, tmp_path: Path):
        _renamed = package.rename(tmp_path / "hello.pax")
        assert PaxPackage(_renamed).parse_package_info() is None


class TestPaxPackageMetadata:
    def test_load_metadata(self, package: Path):
        with PaxPackage.open(package) as pkg:
            metadata = pkg.load_metadata()

        assert metadata.name == "hello"
        assert metadata.version == "1.0"
        assert metadata.arch == ["x86_64"]
        assert metadata.files == ["README", "usr/bin/hello"]

    def test_metadata_cached(self, mocker, package: Path):
        with PaxPackage.open(package) as pkg:
            _unpack_spy = mocker.spy(pkg, "_unpack")
            _first = pkg.load_metadata()
            _second = pkg.load_metadata()

        assert _first is _second
        _unpack_spy.assert_called_once()

    def test_close_removes_private_extraction(self, package: Path):
        pkg = PaxPackage.open(package)
        pkg.load_metadata()
        _private_dir = Path(pkg._tmp_dir.name)  # type: ignore
        assert _private_dir.is_dir()

        pkg.close()
        assert not _private_dir.exists()

    def test_metadata_missing(self, tmp_path: Path):
        _package = write_pax(tmp_path / "foo-1.0-x86_64.pax", {"bin/foo": b"foo"})

        with PaxPackage.open(_package) as pkg, pytest.raises(MetadataMissing):
            pkg.load_metadata()

    def test_metadata_invalid(self, tmp_path: Path):
        _package = write_pax(
            tmp_path / "foo-1.0-x86_64.pax", {METADATA_FNAME: b"name: [broken"}
        )

        with PaxPackage.open(_package) as pkg, pytest.raises(MetadataInvalid):
            pkg.load_metadata()


class TestPaxPackageFiles:
    def test_list_files(self, package: Path):
        with PaxPackage.open(package) as pkg:
            assert pkg.list_files() == [
                "README",
                METADATA_FNAME,
                "usr/bin/hello",
            ]

    def test_verify(self, package: Path):
        with PaxPackage.open(package) as pkg:
            pkg.verify()

    def test_corrupted_package(self, tmp_path: Path):
        _package = tmp_path / "foo-1.0-x86_64.pax"
        _package.write_bytes(b"this is not a zstd stream")

        with PaxPackage.open(_package) as pkg:
            with pytest.raises(ExtractionFailed):
                pkg.list_files()
            with pytest.raises(ExtractionFailed):
                pkg.verify()


class TestPaxPackageExtract:
    def test_extract_to(self, package: Path, tmp_path: Path):
        _dest = tmp_path / "extracted"

        with PaxPackage.open(package) as pkg:
            assert pkg.extract_to(_dest) == _dest

        assert sorted(_f.name for _f in _dest.iterdir()) == [
            "README",
            METADATA_FNAME,
            "usr",
        ]
        _bin = _dest / "usr" / "bin" / "hello"
        assert _bin.read_bytes() == b"#!/bin/sh\necho hello\n"
        assert _bin.stat().st_mode & 0o777 == 0o755
        assert "name: hello" in (_dest / METADATA_FNAME).read_text()

    def test_extract_into_existing_dir(self, package: Path, tmp_path: Path):
        """Test extraction merges into a non-empty destination."""
        _dest = tmp_path / "extracted"
        (_dest / "usr" / "bin").mkdir(parents=True)
        (_dest / "usr" / "bin" / "other").write_text("other")

        with PaxPackage.open(package) as pkg:
            pkg.extract_to(_dest)

        assert (_dest / "usr" / "bin" / "other").read_text() == "other"
        assert (_dest / "usr" / "bin" / "hello").is_file()
        assert (_dest / METADATA_FNAME).is_file()

    def test_extract_corrupted_package(self, tmp_path: Path):
        _package = tmp_path / "foo-1.0-x86_64.pax"
        _package.write_bytes(
            zstandard.ZstdCompressor().compress(b"not a tar container" * 100)
        )
        _dest = tmp_path / "extracted"

        with PaxPackage.open(_package) as pkg, pytest.raises(ExtractionFailed):
            pkg.extract_to(_dest)
        # staging folder is cleaned up
        assert not list(_dest.iterdir())

    def test_extract_truncated_package(self, package: Path, tmp_path: Path):
        _raw = package.read_bytes()
        _truncated = tmp_path / package.name

        for _cut in range(1, len(_raw), 7):
            _truncated.write_bytes(_raw[:_cut])
            _dest = tmp_path / f"extracted_{_cut}"

            with PaxPackage.open(_truncated) as pkg:
                with pytest.raises(ExtractionFailed):
                    pkg.extract_to(_dest)
                with pytest.raises(ExtractionFailed):
                    pkg.list_files()
            assert not list(_dest.iterdir())

    def test_extract_unsafe_member_rejected(self, tmp_path: Path):
        _package = write_pax(
            tmp_path / "foo-1.0-x86_64.pax",
            {"../../evil.txt": b"evil", METADATA_FNAME: b"name: foo"},
        )
        _dest = tmp_path / "a" / "b"

        with PaxPackage.open(_package) as pkg, pytest.raises(ExtractionFailed):
            pkg.extract_to(_dest)
        assert not (tmp_path / "a" / "evil.txt").exists()
        assert not (tmp_path / "evil.txt").exists()
        assert not list(_dest.iterdir())
