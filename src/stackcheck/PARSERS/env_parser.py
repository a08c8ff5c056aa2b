"""
Parsers for .env files, backed by python-dotenv.
"""
import io
import logging
import os
from typing import Dict, Optional

from dotenv import dotenv_values

from ..MODELS.service_definition import ServiceDefinition

logger = logging.getLogger(__name__)

class EnvParser:
    """
    Parser for .env files.
    """
    @staticmethod
    def parse(env_path: str) -> Dict[str, Optional[str]]:
        """
        Parses an .env file from a path.

        Args:
            env_path (str): Path to the .env file.

        Returns:
            Dict[str, Optional[str]]: Dictionary of environment variables.
            A bare KEY line maps to None.
        """
        return dict(dotenv_values(env_path, interpolate=False))

    @staticmethod
    def parse_from_string(content: str) -> Dict[str, Optional[str]]:
        """
        Parses environment variables from a string.
        Handles quotes, comments and the optional 'export' prefix.
        """
        return dict(dotenv_values(stream=io.StringIO(content), interpolate=False))

    @staticmethod
    def build_context(project_dir: str, env_file: Optional[str] = None) -> Dict[str, str]:
        """
        Builds the interpolation context for a project.

        Values from the project's .env file (or ``env_file``) are overridden by
        the process environment.

        :param project_dir: Directory holding the compose file.
        :param env_file: Explicit .env path; defaults to <project_dir>/.env.
        :return: Merged variables.
        """
        path = env_file or os.path.join(project_dir, ".env")
        context: Dict[str, str] = {}
        if os.path.isfile(path):
            logger.debug("Loading project variables from %s", path)
            context.update({k: v for k, v in EnvParser.parse(path).items() if v is not None})
        elif env_file:
            logger.warning("Env file %s not found, ignoring", env_file)
        context.update(os.environ)
        return context

    @staticmethod
    def resolve_service_environment(service: ServiceDefinition, base_dir: str = ".") -> Dict[str, Optional[str]]:
        """
        Returns the effective environment of a service: env_file values first,
        then the inline ``environment`` block on top.

        Missing env files are skipped with a warning.
        """
        env: Dict[str, Optional[str]] = {}
        for env_file in service.environment_files:
            path = env_file if os.path.isabs(env_file) else os.path.join(base_dir, env_file)
            if not os.path.isfile(path):
                logger.warning("Service %s: env_file %s not found", service.name, env_file)
                continue
            env.update(EnvParser.parse(path))
        env.update(service.environment)
        return env
