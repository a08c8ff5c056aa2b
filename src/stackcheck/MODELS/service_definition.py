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
Models for defining services, including links and volume mounts.
"""
from typing import List, Dict, Optional
from pydantic import BaseModel
from enum import Enum

class MountType(str, Enum):
    """
    Kinds of volume mounts a service can declare.
    """
    BIND = "bind"
    VOLUME = "volume"
    ANONYMOUS = "anonymous"
    TMPFS = "tmpfs"

class VolumeMount(BaseModel):
    """
    Defines a mapping between a host path or named volume and a service path.
    """
    type: MountType
    source: Optional[str] = None
    target: str
    read_only: bool = False
    mode: Optional[str] = None

    def to_short_syntax(self) -> str:
        """
        Renders the mount back to the SOURCE:TARGET[:MODE] form.
        """
        if self.type == MountType.ANONYMOUS:
            return self.target
        parts = [self.source or "", self.target]
        if self.mode:
            parts.append(self.mode)
        return ":".join(parts)

class Link(BaseModel):
    """
    A network-reachability link to another service, optionally under an alias.
    """
    service: str
    alias: str

    @classmethod
    def parse(cls, value: str) -> "Link":
        """
        Parses 'service' or 'service:alias'.
        """
        if ":" in value:
            service, alias = value.split(":", 1)
        else:
            service = alias = value
        return cls(service=service, alias=alias or service)

    def __str__(self) -> str:
        if self.alias == self.service:
            return self.service
        return f"{self.service}:{self.alias}"

class ServiceDefinition(BaseModel):
    """
    The full definition of a single service, as declared in a compose file.
    """
    name: str
    image: str = ""
    build_context: Optional[str] = None

    # Execution
    command: List[str] = []
    entrypoint: List[str] = []
    working_dir: Optional[str] = None

    # Environment; None means the value is taken from the host
    environment: Dict[str, Optional[str]] = {}
    environment_files: List[str] = []

    # Networking
    links: List[Link] = []
    ports: Dict[int, Optional[int]] = {}  # {container: host}

    # Storage
    volumes: List[VolumeMount] = []
    volumes_from: List[str] = []

    # Lifecycle
    depends_on: List[str] = []

    @property
    def named_volumes(self) -> List[str]:
        """Names of the named volumes this service mounts."""
        return [m.source for m in self.volumes if m.type == MountType.VOLUME and m.source]

    @property
    def linked_services(self) -> List[str]:
        return [link.service for link in self.links]

    def volumes_from_services(self) -> List[str]:
        """
        Service names referenced by volumes_from, skipping 'container:' entries.

        Entries may carry an access mode suffix, e.g. 'db:ro'.
        """
        services = []
        for entry in self.volumes_from:
            if entry.startswith("container:"):
                continue
            if entry.startswith("service:"):
                entry = entry[len("service:"):]
            services.append(entry.split(":", 1)[0])
        return services
