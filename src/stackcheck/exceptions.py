# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
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

"""
Exceptions raised while loading and checking compose files.
"""
from typing import List, Optional


class StackCheckError(Exception):
    """Base class for all stackcheck errors."""


class ComposeParseError(StackCheckError):
    """
    Raised when a compose file cannot be turned into a model.
    """

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        if path:
            message = f"{path}: {message}"
        super().__init__(message)


class InterpolationError(StackCheckError, ValueError):
    """
    Raised by ${VAR:?message} and ${VAR?message} when VAR is missing.
    """

    def __init__(self, variable: str, message: str = ""):
        self.variable = variable
        detail = message or "required variable is missing"
        super().__init__(f"{variable}: {detail}")


class CircularDependencyError(StackCheckError):
    """
    Raised when links, depends_on and volumes_from form a cycle.
    """

    def __init__(self, cycle: List[str]):
        self.cycle = cycle
        super().__init__(f"Circular dependency detected: {' -> '.join(cycle)}")


class ComposeValidationError(StackCheckError):
    """
    Raised by ComposeValidator.check() when the report holds errors.
    """

    def __init__(self, report):
        self.report = report
        messages = "; ".join(f"{i.path}: {i.message}" for i in report.errors)
        super().__init__(f"{len(report.errors)} error(s): {messages}")
