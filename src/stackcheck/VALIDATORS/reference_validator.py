"""
Cross-reference checks: links, volumes and dependencies must point at
things the file declares.
"""
import logging
from ..exceptions import CircularDependencyError
from ..MODELS.compose_file import ComposeFile
from ..MODELS.service_definition import MountType
from ..MODELS.validation_report import ValidationReport
from ..RUNNERS.dependency_resolver import DependencyResolver

logger = logging.getLogger(__name__)


class ReferenceValidator:
    """
    Checks that every service and volume a service refers to is declared.
    """

    def __init__(self, config: ComposeFile):
        self.config = config

    def validate(self) -> ValidationReport:
        report = ValidationReport()
        services = self.config.services

        for name, svc in services.items():
            path = f"services.{name}"
            for index, link in enumerate(svc.links):
                if link.service == name:
                    report.error("self-reference", f"Service '{name}' links to itself", f"{path}.links[{index}]")
                elif link.service not in services:
                    report.error(
                        "undefined-link",
                        f"Service '{name}' links to undefined service '{link.service}'",
                        f"{path}.links[{index}]",
                    )

            for index, dep in enumerate(svc.depends_on):
                if dep == name:
                    report.error("self-reference", f"Service '{name}' depends on itself", f"{path}.depends_on[{index}]")
                elif dep not in services:
                    report.error(
                        "undefined-dependency",
                        f"Service '{name}' depends on undefined service '{dep}'",
                        f"{path}.depends_on[{index}]",
                    )

            for dep in svc.volumes_from_services():
                if dep == name:
                    report.error("self-reference", f"Service '{name}' takes volumes from itself", f"{path}.volumes_from")
                elif dep not in services:
                    report.error(
                        "undefined-dependency",
                        f"Service '{name}' takes volumes from undefined service '{dep}'",
                        f"{path}.volumes_from",
                    )

            # Legacy files have no top-level volumes; named volumes are created implicitly
            if not self.config.legacy:
                for index, mount in enumerate(svc.volumes):
                    if mount.type == MountType.VOLUME and mount.source not in self.config.volumes:
                        report.error(
                            "undefined-volume",
                            f"Service '{name}' mounts undefined volume '{mount.source}'",
                            f"{path}.volumes[{index}]",
                        )

        for volume_name, volume in self.config.volumes.items():
            if not volume.external and not self.config.mounts_of(volume_name):
                report.warning("unused-volume", f"Volume '{volume_name}' is not used by any service", f"volumes.{volume_name}")

        try:
            DependencyResolver().resolve_order(self.config)
        except CircularDependencyError as e:
            report.error("circular-dependency", str(e), f"services.{e.cycle[0]}")

        logger.debug("Reference checks found %d issue(s)", len(report.issues))
        return report
