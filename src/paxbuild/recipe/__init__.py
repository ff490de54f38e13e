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

from .arch import (
    current_architecture,
    get_compatible_architectures,
    is_architecture_supported,
    validate_architectures,
)
from .schema import BuildRecipe
from .utils import load_recipe, parse_package_filename

__all__ = [
    "BuildRecipe",
    "current_architecture",
    "get_compatible_architectures",
    "is_architecture_supported",
    "load_recipe",
    "parse_package_filename",
    "validate_architectures",
]
