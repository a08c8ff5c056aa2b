"""
Dependency resolution for services to determine startup and shutdown order.
"""
import logging
from typing import List, Dict
from ..exceptions import CircularDependencyError
from ..MODELS.compose_file import ComposeFile
from ..MODELS.service_definition import ServiceDefinition

logger = logging.getLogger(__name__)

class DependencyResolver:
    """
    Resolves the startup and shutdown order of services based on their
    links, depends_on and volumes_from entries.
    """
    @staticmethod
    def dependencies_of(service: ServiceDefinition) -> List[str]:
        """
        Services that must start before ``service``, in declaration order.
        Self references are left out; the validator reports them separately.
        """
        deps: List[str] = []
        for dep in service.linked_services + service.depends_on + service.volumes_from_services():
            if dep != service.name and dep not in deps:
                deps.append(dep)
        return deps

    def dependency_graph(self, config: ComposeFile) -> Dict[str, List[str]]:
        return {name: self.dependencies_of(svc) for name, svc in config.services.items()}

    def resolve_order(self, config: ComposeFile) -> List[str]:
        """
        Determines the correct order to start services using topological sort.

        :param config: The parsed compose file.
        :return: Service names in the order they should be started.
        :raises CircularDependencyError: If a circular dependency is detected.
        """
        services = config.services
        dependencies = self.dependency_graph(config)

        ordered = []
        visited = set()
        path: List[str] = []

        def visit(name):
            """
            Recursive function for topological sort.
            """
            if name in path:
                raise CircularDependencyError(path[path.index(name):] + [name])
            if name not in visited:
                path.append(name)
                for dep in dependencies.get(name, []):
                    if dep in services:  # undefined references are the validator's concern
                        visit(dep)
                path.pop()
                visited.add(name)
                ordered.append(name)

        for name in services:
            visit(name)

        logger.debug("Resolved startup order: %s", ordered)
        return ordered

    def shutdown_order(self, config: ComposeFile) -> List[str]:
        """Services in the order they should be stopped."""
        return list(reversed(self.resolve_order(config)))
