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
"""Download the source artifact into the workspace."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from urllib.parse import unquote, urlsplit

import requests

from paxbuild.common import remove_file, tmp_fname
from paxbuild.consts import DEFAULT_SOURCE_FNAME, DOWNLOAD_CHUNK_SIZE
from paxbuild.errors import SourceFetchError

logger = logging.getLogger(__name__)

REMOTE_SCHEMES = ("http", "https")
FILE_SCHEME = "file"


def filename_from_url(url: str) -> str:
    """Take the trailing path segment of <url> as filename."""
    _path = unquote(urlsplit(url).path)
    return _path.rstrip("/").rsplit("/", 1)[-1] or DEFAULT_SOURCE_FNAME


def _download_remote(url: str, save_dst: Path, *, chunk_size: int) -> None:
    try:
        with requests.get(url, stream=True) as resp:
            if not resp.ok:
                raise SourceFetchError(f"HTTP error {resp.status_code}: {url}")
            with open(save_dst, "wb") as dst:
                for _chunk in resp.iter_content(chunk_size=chunk_size):
                    dst.write(_chunk)
    except (requests.RequestException, OSError) as e:
        raise SourceFetchError(f"failed to download from {url}: {e}") from e


def _copy_local(url: str, save_dst: Path) -> None:
    _split = urlsplit(url)
    _src = Path(unquote(_split.path)) if _split.scheme == FILE_SCHEME else Path(url)
    if not _src.is_file():
        raise SourceFetchError(f"local source not found: {_src}")
    try:
        shutil.copyfile(_src, save_dst)
    except OSError as e:
        raise SourceFetchError(f"failed to copy local source {_src}: {e}") from e


def download_source(
    url: str, download_dir: Path, *, chunk_size: int = DOWNLOAD_CHUNK_SIZE
) -> Path:
    """Download <url> into <download_dir>.

    Besides http(s), `file://` URLs and plain local paths are also accepted.
    Partially downloaded file will be removed on failure.

    Returns:
        The path to the downloaded file, named after the URL's trailing path segment.

    Raises:
        SourceFetchError if the resource cannot be reached or the response is not successful.
    """
    save_dst = download_dir / filename_from_url(url)
    _tmp_dst = download_dir / tmp_fname("download")
    logger.info(f"downloading source from {url} ...")
    try:
        if urlsplit(url).scheme in REMOTE_SCHEMES:
            _download_remote(url, _tmp_dst, chunk_size=chunk_size)
        else:
            _copy_local(url, _tmp_dst)
        os.replace(_tmp_dst, save_dst)
    finally:
        remove_file(_tmp_dst)

    logger.info(f"downloaded to {save_dst}")
    return save_dst
