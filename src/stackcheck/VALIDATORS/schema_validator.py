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
Structural checks on the raw compose document, before it is turned into models.
"""
from typing import Any, Dict
from ..MODELS.validation_report import ValidationReport
from ..PARSERS.compose_parser import is_legacy

SUPPORTED_VERSIONS = {"1", "2", "3"} | {f"2.{minor}" for minor in range(5)} | {f"3.{minor}" for minor in range(10)}

TOP_LEVEL_KEYS = {"version", "services", "volumes", "networks", "secrets", "configs", "name", "include", "models"}

SERVICE_KEYS = {
    "annotations", "attach", "blkio_config", "build", "cap_add", "cap_drop", "cgroup", "cgroup_parent",
    "command", "configs", "container_name", "cpu_count", "cpu_percent", "cpu_period", "cpu_quota",
    "cpu_rt_period", "cpu_rt_runtime", "cpu_shares", "cpus", "cpuset", "credential_spec",
    "depends_on", "deploy", "develop", "device_cgroup_rules", "devices", "dns", "dns_opt",
    "dns_search", "domainname", "driver_opts", "entrypoint", "env_file", "environment", "expose",
    "extends", "external_links", "extra_hosts", "gpus", "group_add", "healthcheck", "hostname",
    "image", "init", "ipc", "isolation", "label_file", "labels", "links", "logging", "mac_address",
    "mem_limit", "mem_reservation", "mem_swappiness", "memswap_limit", "models", "network_mode",
    "networks", "oom_kill_disable", "oom_score_adj", "pid", "pids_limit", "platform", "ports",
    "post_start", "pre_stop", "privileged", "profiles", "provider", "pull_policy", "read_only",
    "restart", "runtime", "scale", "secrets", "security_opt", "shm_size", "stdin_open",
    "stop_grace_period", "stop_signal", "storage_opt", "sysctls", "tmpfs", "tty", "ulimits",
    "use_api_socket", "user", "userns_mode", "uts", "volume_driver", "volumes", "volumes_from",
    "working_dir",
}


def _is_extension(key: Any) -> bool:
    return isinstance(key, str) and key.startswith("x-")


class SchemaValidator:
    """
    Checks keys, versions and value types of a raw compose document.
    """

    def __init__(self, data: Dict[str, Any]):
        """
        :param data: The loaded, interpolated YAML document.
        """
        self.data = data

    @property
    def legacy(self) -> bool:
        return is_legacy(self.data)

    @property
    def major_version(self) -> str:
        version = self.data.get("version")
        if version is None:
            return "1" if self.legacy else ""
        return str(version).split(".", 1)[0]

    def validate(self) -> ValidationReport:
        report = ValidationReport()
        if self.legacy:
            for name, spec in self.data.items():
                self._check_service(report, str(name), spec)
            return report

        self._check_version(report)
        for key in self.data:
            if key not in TOP_LEVEL_KEYS and not _is_extension(key):
                report.error("unknown-top-level-key", f"Unsupported top-level key '{key}'", str(key))

        services = self.data.get("services") or {}
        if not isinstance(services, dict):
            report.error("invalid-services", "'services' must be a mapping", "services")
        else:
            for name, spec in services.items():
                self._check_service(report, str(name), spec)

        volumes = self.data.get("volumes") or {}
        if not isinstance(volumes, dict):
            report.error("invalid-volume-definition", "'volumes' must be a mapping", "volumes")
        else:
            for name, opts in volumes.items():
                if opts is not None and not isinstance(opts, dict):
                    report.error(
                        "invalid-volume-definition",
                        f"Volume '{name}' must be a mapping or empty, got {type(opts).__name__}",
                        f"volumes.{name}",
                    )
        return report

    def _check_version(self, report: ValidationReport):
        if "version" not in self.data:
            return
        version = self.data["version"]
        if not isinstance(version, str):
            report.warning(
                "version-not-string",
                f"Version {version!r} should be quoted so YAML reads it as a string",
                "version",
            )
        if str(version) not in SUPPORTED_VERSIONS:
            report.error("unsupported-version", f"Unsupported compose file version '{version}'", "version")

    def _check_service(self, report: ValidationReport, name: str, spec: Any):
        path = f"services.{name}"
        if not isinstance(spec, dict):
            report.error("invalid-service", f"Service '{name}' must be a mapping", path)
            return

        for key in spec:
            if key not in SERVICE_KEYS and not _is_extension(key):
                report.error("unknown-service-key", f"Service '{name}' has unsupported key '{key}'", f"{path}.{key}")

        if not spec.get("image") and not spec.get("build"):
            report.error("missing-image", f"Service '{name}' has neither an image nor a build context", path)

        if spec.get("links") and self.major_version == "3":
            report.warning(
                "links-unsupported",
                f"Service '{name}' uses links, which version 3 files ignore in swarm mode",
                f"{path}.links",
            )

        self._check_environment(report, path, spec.get("environment"))

    def _check_environment(self, report: ValidationReport, path: str, env: Any):
        path = f"{path}.environment"
        if env is None:
            return
        if isinstance(env, dict):
            for key, value in env.items():
                if key is None or str(key) == "":
                    report.error("invalid-environment-key", "Environment variable name is empty", path)
                if isinstance(value, bool) or isinstance(value, (list, dict)):
                    report.error(
                        "invalid-environment-value",
                        f"{key} contains {value!r}, which is an invalid type, it should be a string, number, or null",
                        f"{path}.{key}",
                    )
        elif isinstance(env, list):
            for index, entry in enumerate(env):
                if not isinstance(entry, (str, int, float)) or isinstance(entry, bool):
                    report.error(
                        "invalid-environment-value",
                        f"Environment entry {entry!r} must be a KEY=VALUE string",
                        f"{path}[{index}]",
                    )
                elif str(entry).startswith("=") or str(entry) == "":
                    report.error("invalid-environment-key", f"Environment entry '{entry}' has no name", f"{path}[{index}]")
        else:
            report.error("invalid-environment", "environment must be a list or a mapping", path)
