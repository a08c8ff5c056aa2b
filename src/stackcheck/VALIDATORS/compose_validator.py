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
Runs every check against a compose file and collects one report.
"""
import logging
import os
from typing import Any, Dict, Optional
from ..exceptions import ComposeValidationError
from ..MODELS.compose_file import ComposeFile
from ..MODELS.validation_report import ValidationReport
from ..PARSERS.compose_parser import ComposeParser
from .image_contracts import EnvContract
from .reference_validator import ReferenceValidator
from .schema_validator import SchemaValidator
from .value_validator import ValueValidator

logger = logging.getLogger(__name__)


class ComposeValidator:
    """
    Validates a parsed compose file, and its raw document when available.

    Example:
        validator = ComposeValidator.from_file("docker-compose.yml")
        report = validator.validate()
        for issue in report.errors:
            print(issue.path, issue.message)
    """

    def __init__(
        self,
        config: ComposeFile,
        raw: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, str]] = None,
        contracts: Optional[Dict[str, EnvContract]] = None,
        require_pinned: bool = False,
    ):
        """
        :param config: The parsed compose file.
        :param raw: The interpolated YAML document; schema checks are skipped without it.
        :param context: Host environment used for pass-through variables.
        :param contracts: Environment contracts keyed by image name.
        :param require_pinned: Warn about images not pinned by digest.
        """
        self.config = config
        self.raw = raw
        self.context = context if context is not None else dict(os.environ)
        self.contracts = contracts
        self.require_pinned = require_pinned

    @classmethod
    def from_file(cls, compose_path: str, context: Optional[Dict[str, str]] = None, **kwargs) -> "ComposeValidator":
        """
        Loads a compose file and prepares a validator for it.

        :raises ComposeParseError: If the file cannot be loaded.
        """
        parser = ComposeParser(context)
        raw = parser.load(compose_path)
        config = parser.build(raw, source_path=compose_path)
        return cls(config, raw=raw, context=parser.context, **kwargs)

    def validate(self) -> ValidationReport:
        """
        Runs schema, reference and value checks.

        :return: All issues found, errors and warnings.
        """
        report = ValidationReport()
        if self.raw is not None:
            report.extend(SchemaValidator(self.raw).validate())
        report.extend(ReferenceValidator(self.config).validate())
        report.extend(
            ValueValidator(
                self.config,
                context=self.context,
                contracts=self.contracts,
                require_pinned=self.require_pinned,
            ).validate()
        )
        logger.info(
            "Validated %s: %d error(s), %d warning(s)",
            self.config.source_path or "<string>",
            len(report.errors),
            len(report.warnings),
        )
        return report

    def check(self) -> ValidationReport:
        """
        Like validate(), but raises when any error was found.

        :raises ComposeValidationError: Carrying the report.
        """
        report = self.validate()
        if not report.ok:
            raise ComposeValidationError(report)
        return report
