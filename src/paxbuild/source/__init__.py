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
"""Source acquisition: download, checksum verification and extraction."""

from .extract import extract_archive, find_source_root
from .fetch import download_source, filename_from_url
from .manager import SourceManager

__all__ = [
    "SourceManager",
    "download_source",
    "extract_archive",
    "filename_from_url",
    "find_source_root",
]
