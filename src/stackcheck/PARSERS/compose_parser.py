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
Parsers for Docker Compose YAML files.
"""
import logging
import os
import shlex
import yaml
from typing import Dict, Any, List, Optional
from ..exceptions import ComposeParseError
from ..MODELS.compose_file import ComposeFile, VolumeDefinition
from ..MODELS.service_definition import ServiceDefinition, VolumeMount, MountType, Link
from ..UTILS.string_interpolation import EnvironmentInterpolator

logger = logging.getLogger(__name__)

BIND_PREFIXES = ('.', '/', '~')

# A file with none of these at the top level is a legacy file of bare services
COMPOSE_KEYS = ('version', 'services', 'volumes', 'networks', 'secrets', 'configs', 'name', 'include', 'models')


def is_legacy(data: Dict[str, Any]) -> bool:
    return not any(key in data for key in COMPOSE_KEYS)


class ComposeParser:
    """
    Parser for docker-compose.yml files.
    """
    def __init__(self, context: Optional[Dict[str, str]] = None):
        """
        Initializes the parser with an optional environment context for interpolation.

        :param context: A dictionary of environment variables for interpolation.
        """
        self.context = context if context is not None else dict(os.environ)

    def parse(self, compose_path: str) -> ComposeFile:
        """
        Parses a compose file from a path.

        :param compose_path: Path to the compose file.
        :return: Parsed configuration.
        """
        return self.build(self.load(compose_path), source_path=compose_path)

    def parse_from_string(self, content: str, source_path: Optional[str] = None) -> ComposeFile:
        """
        Parses a compose file from a string.

        :param content: YAML content of the compose file.
        :return: Parsed configuration.
        """
        return self.build(self.load_from_string(content, source_path), source_path=source_path)

    def load(self, compose_path: str) -> Dict[str, Any]:
        """
        Reads a compose file into interpolated raw data, without building models.
        """
        try:
            with open(compose_path, 'r') as f:
                content = f.read()
        except OSError as e:
            raise ComposeParseError(f"cannot read file: {e.strerror}", compose_path) from e
        return self.load_from_string(content, compose_path)

    def load_from_string(self, content: str, source_path: Optional[str] = None) -> Dict[str, Any]:
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ComposeParseError(f"invalid YAML: {e}", source_path) from e
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ComposeParseError("top-level element must be a mapping", source_path)
        return EnvironmentInterpolator.interpolate_data(data, self.context)

    def build(self, data: Dict[str, Any], source_path: Optional[str] = None) -> ComposeFile:
        """
        Builds a ComposeFile from raw (already interpolated) data.

        Files without any compose top-level key (version, services, volumes...)
        are treated as the legacy format, where every top-level key is a service.
        """
        legacy = is_legacy(data)
        if legacy:
            services_spec = data
            logger.debug("No compose top-level keys, reading %s as a legacy file", source_path or "<string>")
        else:
            services_spec = data.get('services') or {}
            if not isinstance(services_spec, dict):
                raise ComposeParseError("'services' must be a mapping", source_path)

        services = {}
        for name, spec in services_spec.items():
            if not isinstance(spec, dict):
                raise ComposeParseError(f"service '{name}' must be a mapping", source_path)
            try:
                services[str(name)] = self._parse_service(str(name), spec)
            except (ValueError, TypeError, KeyError) as e:
                raise ComposeParseError(f"service '{name}': {e}", source_path) from e

        version = data.get('version')
        volumes = {} if legacy else self._parse_volumes(data.get('volumes') or {})
        networks = data.get('networks') if not legacy else None

        return ComposeFile(
            version=str(version) if version is not None else None,
            services=services,
            volumes=volumes,
            networks=[str(n) for n in networks] if isinstance(networks, dict) else [],
            source_path=source_path,
            legacy=legacy,
        )

    def _parse_volumes(self, spec: Any) -> Dict[str, VolumeDefinition]:
        volumes = {}
        if not isinstance(spec, dict):
            return volumes
        for name, opts in spec.items():
            if not isinstance(opts, dict):
                # null and {} both mean defaults; anything else is reported by the validator
                volumes[str(name)] = VolumeDefinition(name=str(name))
                continue
            volumes[str(name)] = VolumeDefinition(
                name=str(name),
                driver=str(opts['driver']) if opts.get('driver') is not None else None,
                driver_opts=self._to_mapping(opts.get('driver_opts')),
                external=bool(opts.get('external', False)),
                labels=self._to_mapping(opts.get('labels')),
            )
        return volumes

    def _parse_service(self, name: str, spec: Dict[str, Any]) -> ServiceDefinition:
        """
        Parses a single service definition from a compose file.

        :param name: The name of the service.
        :param spec: The service specification dictionary.
        :return: A ServiceDefinition instance.
        """
        build = spec.get('build')
        build_context = build.get('context', '.') if isinstance(build, dict) else build

        depends_on = spec.get('depends_on')
        if isinstance(depends_on, dict):
            depends_on = list(depends_on.keys())

        return ServiceDefinition(
            name=name,
            image=str(spec.get('image') or ''),
            build_context=str(build_context) if build_context is not None else None,
            command=self._to_command(spec.get('command')),
            entrypoint=self._to_command(spec.get('entrypoint')),
            working_dir=spec.get('working_dir'),
            environment=self._parse_environment(spec.get('environment')),
            environment_files=self._to_list(spec.get('env_file')),
            links=[Link.parse(link) for link in self._to_list(spec.get('links'))],
            ports=self._parse_ports(self._require_list(spec, 'ports')),
            volumes=[self._parse_mount(v) for v in self._require_list(spec, 'volumes')],
            volumes_from=self._to_list(spec.get('volumes_from')),
            depends_on=self._to_list(depends_on),
        )

    def _parse_environment(self, env_spec: Any) -> Dict[str, Optional[str]]:
        """
        Accepts both the list form (KEY=VALUE or bare KEY) and the mapping form.
        """
        environment: Dict[str, Optional[str]] = {}
        if isinstance(env_spec, list):
            for e in env_spec:
                e = str(e)
                if '=' in e:
                    k, v = e.split('=', 1)
                    environment[k] = v
                else:
                    environment[e] = None
        elif isinstance(env_spec, dict):
            for k, v in env_spec.items():
                environment[str(k)] = self._scalar_to_str(v)
        elif env_spec is not None:
            raise ValueError("environment must be a list or a mapping")
        return environment

    def _parse_mount(self, v: Any) -> VolumeMount:
        if isinstance(v, dict):
            source = v.get('source')
            mount_type = v.get('type') or ('volume' if source else 'anonymous')
            if mount_type == 'volume' and not source:
                mount_type = 'anonymous'
            return VolumeMount(
                type=MountType(mount_type),
                source=source,
                target=self._require(v, 'target'),
                read_only=bool(v.get('read_only', False)),
            )

        parts = str(v).split(':')
        if len(parts) == 1:
            return VolumeMount(type=MountType.ANONYMOUS, target=parts[0])
        if len(parts) > 3:
            raise ValueError(f"invalid volume specification '{v}'")
        source, target = parts[0], parts[1]
        mode = parts[2] if len(parts) == 3 else None
        mount_type = MountType.BIND if source.startswith(BIND_PREFIXES) else MountType.VOLUME
        return VolumeMount(
            type=mount_type,
            source=source,
            target=target,
            read_only=mode is not None and 'ro' in mode.split(','),
            mode=mode,
        )

    def _parse_ports(self, ports_spec: List[Any]) -> Dict[int, Optional[int]]:
        """
        Parses CONTAINER, HOST:CONTAINER and IP:HOST:CONTAINER forms,
        with optional /protocol suffixes and matching ranges.
        """
        ports: Dict[int, Optional[int]] = {}
        for p in ports_spec:
            if isinstance(p, dict):
                published = p.get('published')
                ports[int(self._require(p, 'target'))] = int(published) if published not in (None, '') else None
                continue
            if isinstance(p, int):
                ports[p] = None
                continue
            parts = str(p).split('/', 1)[0].split(':')
            container = parts[-1]
            host = parts[-2] if len(parts) >= 2 else None
            container_range = self._port_range(container)
            host_range = self._port_range(host) if host else [None] * len(container_range)
            if len(host_range) != len(container_range):
                raise ValueError(f"port ranges do not match in '{p}'")
            for c, h in zip(container_range, host_range):
                ports[c] = h
        return ports

    def _require_list(self, spec: Dict[str, Any], key: str) -> List[Any]:
        value = spec.get(key)
        if value is None:
            return []
        if not isinstance(value, list):
            raise ValueError(f"'{key}' must be a list")
        return value

    def _require(self, spec: Dict[str, Any], key: str) -> Any:
        if spec.get(key) in (None, ''):
            raise ValueError(f"'{key}' is required in {spec}")
        return spec[key]

    def _port_range(self, value: str) -> List[int]:
        if '-' in value:
            start, end = (int(part) for part in value.split('-', 1))
            if end < start:
                raise ValueError(f"invalid port range '{value}'")
            return list(range(start, end + 1))
        return [int(value)]

    def _scalar_to_str(self, value: Any) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, bool):
            return 'true' if value else 'false'
        return str(value)

    def _to_mapping(self, value: Any) -> Dict[str, str]:
        if isinstance(value, dict):
            return {str(k): str(v) for k, v in value.items()}
        if isinstance(value, list):
            return dict(str(item).split('=', 1) if '=' in str(item) else (str(item), '') for item in value)
        return {}

    def _to_command(self, val: Any) -> List[str]:
        """
        Commands given as a string are split shell-style.
        """
        if isinstance(val, str):
            return shlex.split(val)
        return self._to_list(val)

    def _to_list(self, val: Any) -> List[str]:
        """
        Helper to ensure a value is a list of strings.

        :param val: The value to convert.
        :return: A list of strings.
        """
        if val is None:
            return []
        if isinstance(val, str):
            return [val]
        return [str(v) for v in val]
