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
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, model_validator
from typing_extensions import Self


class MetaFileBase(BaseModel):
    """Base class for a YAML metadata file.

    Unknown keys in the input are ignored, numbers are accepted for
        string fields(YAML parses `version: 1.0` as float).
    """

    model_config = ConfigDict(
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def _external_input_validator(cls, data: Any) -> Any:
        """Validate external input, like parsing meta files."""
        if not isinstance(data, dict):
            raise ValueError(
                f"{cls.__name__} expects a mapping, get {type(data).__name__}"
            )
        return data

    @classmethod
    def parse_metafile(cls, _input: str) -> Self:
        try:
            _raw = yaml.safe_load(_input)
        except yaml.YAMLError as e:
            raise ValueError(f"invalid YAML document: {e}") from e
        return cls.model_validate(_raw)

    @classmethod
    def load_metafile(cls, fpath: Path) -> Self:
        return cls.parse_metafile(fpath.read_text(encoding="utf-8"))

    def export_metafile(self) -> str:
        _raw = self.model_dump(by_alias=True, exclude_none=True)
        return yaml.safe_dump(_raw, sort_keys=False, allow_unicode=True)

    def write_metafile(self, fpath: Path) -> Path:
        fpath.write_text(self.export_metafile(), encoding="utf-8")
        return fpath
