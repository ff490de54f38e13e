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
"""Acquire the source tree shared by all architecture builds."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from paxbuild.common import file_sha256, normalize_checksum
from paxbuild.consts import DOWNLOAD_CHUNK_SIZE, WORKSPACE_EXTRACT_DIR
from paxbuild.errors import ChecksumMismatch

from .extract import extract_archive, find_source_root
from .fetch import download_source

logger = logging.getLogger(__name__)


class SourceManager:
    """Produce one local source tree from a source URL.

    The source tree is extracted under <workdir>, and is shared read-only
        by all the architecture builds afterward.
    """

    def __init__(
        self, workdir: Path, *, chunk_size: int = DOWNLOAD_CHUNK_SIZE
    ) -> None:
        self.workdir = workdir
        self.extract_dir = workdir / WORKSPACE_EXTRACT_DIR
        self._chunk_size = chunk_size

    @staticmethod
    def calculate_hash(fpath: Path) -> str:
        return file_sha256(fpath).hexdigest()

    def download_source(self, url: str) -> Path:
        self.workdir.mkdir(parents=True, exist_ok=True)
        return download_source(url, self.workdir, chunk_size=self._chunk_size)

    def verify_hash(self, fpath: Path, expected_hash: str) -> str:
        """Compare sha256 of <fpath> against <expected_hash>.

        Raises:
            ChecksumMismatch if the digest doesn't match.
        """
        logger.info("verifying source checksum ...")
        _expected = normalize_checksum(expected_hash)
        _actual = self.calculate_hash(fpath)
        if _actual != _expected:
            raise ChecksumMismatch(expected=_expected, actual=_actual)
        logger.info(f"checksum verified: {_actual}")
        return _actual

    def extract_source(self, archive: Path) -> Path:
        if self.extract_dir.exists():
            shutil.rmtree(self.extract_dir)
        extract_archive(archive, self.extract_dir)
        _source_root = find_source_root(self.extract_dir)
        logger.info(f"source extracted to {_source_root}")
        return _source_root

    def acquire(self, url: str, expected_hash: str | None = None) -> Path:
        """Download, verify and extract the source, return the source root."""
        _archive = self.download_source(url)
        if expected_hash:
            self.verify_hash(_archive, expected_hash)
        return self.extract_source(_archive)
