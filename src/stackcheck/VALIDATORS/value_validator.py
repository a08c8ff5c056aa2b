"""
Value checks: image references, environment contracts, ports and mount modes.
"""
import logging
import os
from typing import Dict, Optional
from ..MODELS.compose_file import ComposeFile
from ..MODELS.service_definition import ServiceDefinition
from ..MODELS.validation_report import ValidationReport
from ..PARSERS.env_parser import EnvParser
from ..REGISTRY.image_reference import ImageReference
from .image_contracts import DEFAULT_CONTRACTS, EnvContract

logger = logging.getLogger(__name__)

VOLUME_MODES = {"ro", "rw", "z", "Z", "cached", "delegated", "consistent", "nocopy"}


class ValueValidator:
    """
    Checks the values a compose file sets, service by service.
    """

    def __init__(
        self,
        config: ComposeFile,
        context: Optional[Dict[str, str]] = None,
        contracts: Optional[Dict[str, EnvContract]] = None,
        require_pinned: bool = False,
    ):
        """
        :param config: The parsed compose file.
        :param context: Host environment used for pass-through variables.
        :param contracts: Environment contracts keyed by image name.
        :param require_pinned: Warn about images not pinned by digest.
        """
        self.config = config
        self.context = context if context is not None else dict(os.environ)
        self.contracts = contracts if contracts is not None else DEFAULT_CONTRACTS
        self.require_pinned = require_pinned
        self.base_dir = os.path.dirname(os.path.abspath(config.source_path)) if config.source_path else "."

    def validate(self) -> ValidationReport:
        report = ValidationReport()
        for name, svc in self.config.services.items():
            path = f"services.{name}"
            image = self._check_image(report, svc, path)
            self._check_environment(report, svc, image, path)
            self._check_ports(report, svc, path)
            self._check_mounts(report, svc, path)
        logger.debug("Value checks found %d issue(s)", len(report.issues))
        return report

    def _check_image(self, report: ValidationReport, svc: ServiceDefinition, path: str) -> Optional[ImageReference]:
        if not svc.image:
            return None
        try:
            image = ImageReference.parse(svc.image)
        except ValueError as e:
            report.error("invalid-image-reference", f"Service '{svc.name}': {e}", f"{path}.image")
            return None
        if self.require_pinned and not image.is_pinned:
            report.warning(
                "unpinned-image",
                f"Service '{svc.name}' uses image '{svc.image}' without a digest",
                f"{path}.image",
            )
        return image

    def effective_environment(self, svc: ServiceDefinition) -> Dict[str, Optional[str]]:
        """
        The service environment with env_file values merged in and
        pass-through variables resolved from the host context.
        """
        env = EnvParser.resolve_service_environment(svc, self.base_dir)
        return {key: self.context.get(key) if value is None else value for key, value in env.items()}

    def _check_environment(self, report: ValidationReport, svc: ServiceDefinition, image: Optional[ImageReference], path: str):
        env = self.effective_environment(svc)
        required = set()

        contract = self.contracts.get(image.name) if image else None
        if contract:
            required.update(contract.any_of)
            if not contract.is_satisfied(env):
                report.error(
                    "missing-required-environment",
                    f"Service '{svc.name}' uses image '{svc.image}': {contract.describe()}",
                    f"{path}.environment",
                )

        for key, value in svc.environment.items():
            if value == "" and key not in required:
                report.warning(
                    "empty-environment-value",
                    f"Service '{svc.name}' sets {key} to an empty string",
                    f"{path}.environment.{key}",
                )

    def _check_ports(self, report: ValidationReport, svc: ServiceDefinition, path: str):
        for container, host in svc.ports.items():
            for port in (container, host):
                if port is not None and not 1 <= port <= 65535:
                    report.error("invalid-port", f"Service '{svc.name}' uses port {port} outside 1-65535", f"{path}.ports")

    def _check_mounts(self, report: ValidationReport, svc: ServiceDefinition, path: str):
        for index, mount in enumerate(svc.volumes):
            if mount.mode is None:
                continue
            unknown = [m for m in mount.mode.split(",") if m not in VOLUME_MODES]
            if unknown:
                report.error(
                    "invalid-volume-mode",
                    f"Service '{svc.name}' mounts {mount.target} with unknown mode '{','.join(unknown)}'",
                    f"{path}.volumes[{index}]",
                )