"""
Models for a whole compose file: services plus top-level volumes.
"""
from typing import List, Dict, Optional
from pydantic import BaseModel, Field
from .service_definition import ServiceDefinition

class VolumeDefinition(BaseModel):
    """
    A top-level named volume. An empty mapping gives all defaults.
    """
    name: str
    driver: Optional[str] = None
    driver_opts: Dict[str, str] = {}
    external: bool = False
    labels: Dict[str, str] = {}

    @property
    def is_default(self) -> bool:
        return not (self.driver or self.driver_opts or self.external or self.labels)

class ComposeFile(BaseModel):
    """
    Complete configuration for a multi-service stack.
    Equivalent to a parsed docker-compose.yml file.
    """
    version: Optional[str] = None
    services: Dict[str, ServiceDefinition] = Field(default_factory=dict)
    volumes: Dict[str, VolumeDefinition] = Field(default_factory=dict)
    networks: List[str] = []
    source_path: Optional[str] = None
    legacy: bool = False

    @property
    def format(self) -> str:
        """
        One of 'v1', 'v2', 'v3' or 'spec' (version-less with a services key).
        """
        if self.legacy:
            return "v1"
        if self.version is None:
            return "spec"
        major = self.version.split(".", 1)[0]
        return f"v{major}"

    def mounts_of(self, volume_name: str) -> List[str]:
        """Services mounting the given named volume."""
        return [name for name, svc in self.services.items() if volume_name in svc.named_volumes]
