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
Converter that writes a parsed compose file back out in normalized form.
"""
import os
import yaml
from typing import Any, Dict
from ..MODELS.compose_file import ComposeFile, VolumeDefinition
from ..MODELS.service_definition import ServiceDefinition, VolumeMount, MountType
from ..PARSERS.compose_parser import BIND_PREFIXES


def _escape(value: Any) -> Any:
    """
    Doubles every '$' in string values so that parsing the output does not
    interpolate values that were already interpolated once.
    """
    if isinstance(value, str):
        return value.replace('$', '$$')
    if isinstance(value, dict):
        return {k: _escape(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_escape(v) for v in value]
    return value


class ComposeRenderer:
    """
    Renders a ComposeFile as YAML: environment as a mapping, mounts in short
    syntax where that is unambiguous, and empty fields left out.
    """

    def to_dict(self, config: ComposeFile) -> Dict[str, Any]:
        services = {name: self._service(svc) for name, svc in config.services.items()}
        if config.legacy:
            return services

        document: Dict[str, Any] = {}
        if config.version is not None:
            document['version'] = config.version
        document['services'] = services
        if config.volumes:
            document['volumes'] = {name: self._volume(vol) for name, vol in config.volumes.items()}
        if config.networks:
            document['networks'] = {name: {} for name in config.networks}
        return document

    def render(self, config: ComposeFile) -> str:
        """
        Returns the normalized document as a YAML string, with '$' written as
        '$$' so the output reads back to the same values.
        """
        return yaml.safe_dump(_escape(self.to_dict(config)), sort_keys=False, default_flow_style=False)

    def write(self, config: ComposeFile, output_path: str) -> str:
        """
        Writes the normalized document to ``output_path``.

        :return: The path written.
        """
        parent = os.path.dirname(output_path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(output_path, 'w') as f:
            f.write(self.render(config))
        return output_path

    def _service(self, svc: ServiceDefinition) -> Dict[str, Any]:
        spec: Dict[str, Any] = {}
        if svc.image:
            spec['image'] = svc.image
        if svc.build_context is not None:
            spec['build'] = svc.build_context
        if svc.command:
            spec['command'] = list(svc.command)
        if svc.entrypoint:
            spec['entrypoint'] = list(svc.entrypoint)
        if svc.working_dir:
            spec['working_dir'] = svc.working_dir
        if svc.environment:
            spec['environment'] = dict(svc.environment)
        if svc.environment_files:
            spec['env_file'] = list(svc.environment_files)
        if svc.links:
            spec['links'] = [str(link) for link in svc.links]
        if svc.ports:
            spec['ports'] = [
                f"{host}:{container}" if host is not None else str(container)
                for container, host in svc.ports.items()
            ]
        if svc.volumes:
            spec['volumes'] = [self._mount(m) for m in svc.volumes]
        if svc.volumes_from:
            spec['volumes_from'] = list(svc.volumes_from)
        if svc.depends_on:
            spec['depends_on'] = list(svc.depends_on)
        return spec

    def _mount(self, mount: VolumeMount) -> Any:
        if mount.type == MountType.ANONYMOUS and not mount.read_only and not mount.mode:
            return mount.target

        short_is_exact = (
            (mount.type == MountType.BIND and mount.source and mount.source.startswith(BIND_PREFIXES))
            or (mount.type == MountType.VOLUME and mount.source and not mount.source.startswith(BIND_PREFIXES))
        ) and (mount.mode or not mount.read_only)
        if short_is_exact:
            return mount.to_short_syntax()

        long_form: Dict[str, Any] = {'type': mount.type.value, 'target': mount.target}
        if mount.type == MountType.ANONYMOUS:
            long_form['type'] = 'volume'
        if mount.source:
            long_form['source'] = mount.source
        if mount.read_only:
            long_form['read_only'] = True
        return long_form

    def _volume(self, volume: VolumeDefinition) -> Dict[str, Any]:
        spec: Dict[str, Any] = {}
        if volume.driver:
            spec['driver'] = volume.driver
        if volume.driver_opts:
            spec['driver_opts'] = dict(volume.driver_opts)
        if volume.external:
            spec['external'] = True
        if volume.labels:
            spec['labels'] = dict(volume.labels)
        return spec
