"""
Utilities for string interpolation using environment variables.
"""
import logging
import re
from typing import Any, Dict, Optional

from ..exceptions import InterpolationError

logger = logging.getLogger(__name__)

# $$ | $VAR | ${VAR} | ${VAR<sep><arg>} where sep is one of :- - :+ + :? ?
_PATTERN = re.compile(
    r'\$(?:'
    r'(?P<escaped>\$)'
    r'|(?P<named>[_a-zA-Z][_a-zA-Z0-9]*)'
    r'|\{(?P<braced>[_a-zA-Z][_a-zA-Z0-9]*)(?:(?P<sep>:?[-+?])(?P<arg>[^}]*))?\}'
    r')'
)

class EnvironmentInterpolator:
    """
    Utility for interpolating environment variables in strings.
    Supports $VAR, ${VAR}, ${VAR:-default}, ${VAR-default}, ${VAR:+value},
    ${VAR+value}, ${VAR:?error}, ${VAR?error} and $$ for a literal dollar.
    """
    @staticmethod
    def interpolate(template: str, context: Dict[str, str]) -> str:
        """
        Interpolates environment variables in the template string using the provided context.

        :param template: The string containing ${VAR} placeholders.
        :param context: The environment variables context.
        :return: The interpolated string.
        :raises InterpolationError: If a ${VAR?err} variable is missing.
        """
        def replace(match):
            if match.group('escaped'):
                return '$'

            var_name = match.group('named') or match.group('braced')
            sep = match.group('sep')
            arg = match.group('arg') or ''
            value: Optional[str] = context.get(var_name)

            # A leading colon makes "set but empty" count as unset
            if sep and sep.startswith(':'):
                present = bool(value)
                op = sep[1]
            else:
                present = value is not None
                op = sep

            if op == '-':
                return value if present else arg
            if op == '+':
                return arg if present else ''
            if op == '?':
                if not present:
                    raise InterpolationError(var_name, arg)
                return value

            if value is None:
                logger.warning("The %s variable is not set. Defaulting to a blank string.", var_name)
                return ''
            return value

        return _PATTERN.sub(replace, template)

    @classmethod
    def interpolate_data(cls, data: Any, context: Dict[str, str]) -> Any:
        """
        Recursively interpolates every string value in parsed YAML data.
        Mapping keys are left untouched.
        """
        if isinstance(data, str):
            return cls.interpolate(data, context)
        if isinstance(data, dict):
            return {k: cls.interpolate_data(v, context) for k, v in data.items()}
        if isinstance(data, list):
            return [cls.interpolate_data(v, context) for v in data]
        return data
