"""
Documented environment contracts of well-known images.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class EnvContract:
    """
    At least one of ``any_of`` must hold a non-empty value, unless one of the
    ``unless`` variables is set to the given value.
    """

    image: str
    any_of: List[str]
    unless: Dict[str, str] = field(default_factory=dict)

    def is_satisfied(self, environment: Dict[str, Optional[str]]) -> bool:
        for key, expected in self.unless.items():
            if environment.get(key) == expected:
                return True
        return any(environment.get(key) for key in self.any_of)

    def describe(self) -> str:
        if len(self.any_of) == 1:
            return f"{self.any_of[0]} must be set to a non-empty value"
        return f"one of {', '.join(self.any_of)} must be set to a non-empty value"


DEFAULT_CONTRACTS: Dict[str, EnvContract] = {
    "postgres": EnvContract(
        image="postgres",
        any_of=["POSTGRES_PASSWORD", "POSTGRES_PASSWORD_FILE"],
        unless={"POSTGRES_HOST_AUTH_METHOD": "trust"},
    ),
    "mysql": EnvContract(
        image="mysql",
        any_of=[
            "MYSQL_ROOT_PASSWORD",
            "MYSQL_ROOT_PASSWORD_FILE",
            "MYSQL_ALLOW_EMPTY_PASSWORD",
            "MYSQL_RANDOM_ROOT_PASSWORD",
        ],
    ),
    "mariadb": EnvContract(
        image="mariadb",
        any_of=[
            "MARIADB_ROOT_PASSWORD",
            "MARIADB_ROOT_PASSWORD_HASH",
            "MARIADB_ALLOW_EMPTY_ROOT_PASSWORD",
            "MARIADB_RANDOM_ROOT_PASSWORD",
            "MYSQL_ROOT_PASSWORD",
            "MYSQL_ALLOW_EMPTY_PASSWORD",
            "MYSQL_RANDOM_ROOT_PASSWORD",
        ],
    ),
}
