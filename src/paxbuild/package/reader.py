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
"""Read and unpack .pax package archives."""

from __future__ import annotations

import logging
import os
import shutil
import tarfile
from os import PathLike
from pathlib import Path
from tempfile import TemporaryDirectory

import zstandard

from paxbuild.common import file_sha256, tmp_fname
from paxbuild.consts import METADATA_FNAME
from paxbuild.errors import (
    ExtractionFailed,
    MetadataInvalid,
    MetadataMissing,
    PackageNotFound,
)
from paxbuild.recipe.utils import parse_package_filename
from paxbuild.source.extract import safe_tar_extractall

from .schema import PackageMetadata

logger = logging.getLogger(__name__)

STAGING_PREFIX = ".pax_staging"
READ_CHUNK_SIZE = 1024**2  # 1MiB


class _ZstdFrameReader:
    """Read-only file-like wrapper that decompresses exactly one zstd frame.

    Unlike ZstdDecompressor.stream_reader, reaching the end of <src> before
        the frame ends raises ZstdError instead of returning EOF.
    """

    def __init__(self, src, chunk_size: int = READ_CHUNK_SIZE) -> None:
        self._src = src
        self._chunk_size = chunk_size
        self._dobj = zstandard.ZstdDecompressor().decompressobj()
        self._buf = bytearray()

    def read(self, size: int = -1) -> bytes:
        while size < 0 or len(self._buf) < size:
            _chunk = self._src.read(self._chunk_size)
            if not _chunk:
                if not self._dobj.eof:
                    raise zstandard.ZstdError("incomplete zstd frame")
                break
            self._buf += self._dobj.decompress(_chunk)

        if size < 0:
            size = len(self._buf)
        _res = bytes(self._buf[:size])
        del self._buf[:size]
        return _res

    def drain(self) -> None:
        """Consume the rest of the frame, ensuring it ends properly."""
        while self.read(self._chunk_size):
            pass


def _merge_tree(src: Path, dest: Path) -> None:
    """Move everything under <src> into <dest>, top-level metadata.yaml goes last."""
    for curdir, _, fnames in os.walk(src):
        curdir = Path(curdir)
        _rel = curdir.relative_to(src)
        _dest_dir = dest / _rel
        _dest_dir.mkdir(parents=True, exist_ok=True)
        for _fname in fnames:
            if curdir == src and _fname == METADATA_FNAME:
                continue
            os.replace(curdir / _fname, _dest_dir / _fname)

    _metadata = src / METADATA_FNAME
    if _metadata.is_file():
        os.replace(_metadata, dest / METADATA_FNAME)


class PaxPackage:
    """Helper class for reading a .pax package file.

    The metadata is parsed lazily at the first access, and then cached.

    This class is NOT safe for multi-thread, create separated instance
        for each worker thread if used in multi-threaded environment.
    """

    def __init__(self, path: PathLike | str) -> None:
        self.path = Path(path)
        if not self.path.is_file():
            raise PackageNotFound(self.path)
        self._metadata: PackageMetadata | None = None
        self._tmp_dir: TemporaryDirectory | None = None

    @classmethod
    def open(cls, path: PathLike | str) -> PaxPackage:
        return cls(path)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def close(self) -> None:
        if self._tmp_dir:
            self._tmp_dir.cleanup()
            self._tmp_dir = None

    def _unpack(self, dest: Path) -> None:
        try:
            with open(self.path, "rb") as _src:
                _zstd_reader = _ZstdFrameReader(_src)
                with tarfile.open(fileobj=_zstd_reader, mode="r|") as _tar:
                    safe_tar_extractall(_tar, dest)
                # tar reading stops at the end-of-archive marker
                _zstd_reader.drain()
        except (tarfile.TarError, zstandard.ZstdError, EOFError, OSError) as e:
            raise ExtractionFailed(
                f"failed to extract package {self.path.name}: {e!r}"
            ) from e

    def _private_extract_dir(self) -> Path:
        """Extract the package once into a private temporary directory."""
        if self._tmp_dir is None:
            _tmp_dir = TemporaryDirectory(prefix="paxpkg_")
            try:
                self._unpack(Path(_tmp_dir.name))
            except Exception:
                _tmp_dir.cleanup()
                raise
            self._tmp_dir = _tmp_dir
        return Path(self._tmp_dir.name)

    def extract_to(self, dest: PathLike | str) -> Path:
        """Unpack the package into <dest>.

        The package is first unpacked into a hidden staging directory inside <dest>,
            and then merged into <dest> with metadata.yaml moved in last. The present
            of metadata.yaml indicates a completed extraction.

        Raises:
            ExtractionFailed on corrupted archive or unsafe members, the staging
                directory is removed.
        """
        dest = Path(dest)
        dest.mkdir(parents=True, exist_ok=True)
        _staging = dest / tmp_fname(prefix=STAGING_PREFIX)
        logger.info(f"extracting {self.path.name} to {dest} ...")
        try:
            self._unpack(_staging)
            try:
                _merge_tree(_staging, dest)
            except OSError as e:
                raise ExtractionFailed(
                    f"failed to move extracted files into {dest}: {e!r}"
                ) from e
        finally:
            shutil.rmtree(_staging, ignore_errors=True)
        return dest

    def load_metadata(self) -> PackageMetadata:
        if self._metadata is not None:
            return self._metadata

        _metadata_f = self._private_extract_dir() / METADATA_FNAME
        if not _metadata_f.is_file():
            raise MetadataMissing(f"{METADATA_FNAME} not found in {self.path.name}")
        try:
            self._metadata = PackageMetadata.load_metafile(_metadata_f)
        except ValueError as e:
            raise MetadataInvalid(
                f"invalid {METADATA_FNAME} in {self.path.name}: {e}"
            ) from e
        return self._metadata

    def size(self) -> int:
        return self.path.stat().st_size

    def calculate_hash(self) -> str:
        """SHA-256 of the compressed package file, in hex."""
        return file_sha256(self.path).hexdigest()

    def list_files(self) -> list[str]:
        """List every file in the package, including the metadata document.

        The package is freshly extracted for each call.
        """
        with TemporaryDirectory(prefix="paxpkg_") as _tmp_dir:
            _tmp_dir = Path(_tmp_dir)
            self._unpack(_tmp_dir)
            return sorted(
                (Path(curdir) / _fname).relative_to(_tmp_dir).as_posix()
                for curdir, _, fnames in os.walk(_tmp_dir)
                for _fname in fnames
            )

    def verify(self) -> None:
        """Check the package can be unpacked and carries a valid metadata."""
        self.load_metadata()
        self.list_files()

    def filename(self) -> str:
        return self.path.name

    def parse_package_info(self) -> tuple[str, str, str] | None:
        return parse_package_filename(self.path.name)
