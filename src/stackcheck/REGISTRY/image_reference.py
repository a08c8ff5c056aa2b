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
Image reference parsing.
Parses references like 'postgres', 'nginx:1.21' or
'rumaio/ruma-dev@sha256:4c1f...'.
"""

import re
from typing import Optional
from dataclasses import dataclass

# algorithm:hex, per the OCI image spec
DIGEST_PATTERN = re.compile(r"^[a-z0-9]+(?:[.+_-][a-z0-9]+)*:[a-zA-Z0-9=_-]{32,}$")
SHA256_PATTERN = re.compile(r"^sha256:[a-f0-9]{64}$")
REPOSITORY_PATTERN = re.compile(r"^[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*(?:/[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*)*$")
TAG_PATTERN = re.compile(r"^[\w][\w.-]{0,127}$")


@dataclass
class ImageReference:
    """
    Parsed image reference.

    Examples:
        - postgres -> docker.io/library/postgres:latest
        - nginx:1.21 -> docker.io/library/nginx:1.21
        - rumaio/ruma-dev@sha256:4c1f... -> docker.io/rumaio/ruma-dev@sha256:4c1f...
        - localhost:5000/image:v1 -> localhost:5000/image:v1
    """

    registry: str
    repository: str
    tag: Optional[str] = None
    digest: Optional[str] = None

    DEFAULT_REGISTRY = "docker.io"
    DEFAULT_TAG = "latest"

    @classmethod
    def parse(cls, reference: str) -> "ImageReference":
        """
        Parse an image reference string.

        Args:
            reference: Image reference string (e.g., 'postgres', 'myuser/myimage:v1')

        Returns:
            Parsed ImageReference object.

        Raises:
            ValueError: If the reference is empty or any part of it is malformed.
        """
        if not reference:
            raise ValueError("Empty image reference")
        original = reference

        digest = None
        if "@" in reference:
            reference, digest = reference.rsplit("@", 1)
            if not DIGEST_PATTERN.match(digest):
                raise ValueError(f"Malformed digest in '{original}'")
            if digest.startswith("sha256:") and not SHA256_PATTERN.match(digest):
                raise ValueError(f"sha256 digest must be 64 lowercase hex digits in '{original}'")

        tag = None
        if ":" in reference:
            # A colon followed by a slash belongs to a registry port
            last_colon = reference.rfind(":")
            after_colon = reference[last_colon + 1 :]
            if "/" not in after_colon:
                tag = after_colon
                reference = reference[:last_colon]
                if not TAG_PATTERN.match(tag):
                    raise ValueError(f"Malformed tag in '{original}'")

        parts = reference.split("/")
        first_part = parts[0]
        if len(parts) > 1 and ("." in first_part or ":" in first_part or first_part == "localhost"):
            registry = first_part
            repository = "/".join(parts[1:])
        else:
            registry = cls.DEFAULT_REGISTRY
            repository = reference if len(parts) > 1 else f"library/{reference}"

        if not REPOSITORY_PATTERN.match(repository):
            raise ValueError(f"Malformed repository name in '{original}'")

        if not tag and not digest:
            tag = cls.DEFAULT_TAG

        return cls(registry=registry, repository=repository, tag=tag, digest=digest)

    @property
    def is_pinned(self) -> bool:
        """True when the reference names content by digest."""
        return self.digest is not None

    @property
    def name(self) -> str:
        """Last repository path component, e.g. 'postgres' or 'ruma-dev'."""
        return self.repository.rsplit("/", 1)[-1]

    @property
    def full_name(self) -> str:
        """Get full image name with registry."""
        name = f"{self.registry}/{self.repository}"
        if self.digest:
            return f"{name}@{self.digest}"
        if self.tag:
            return f"{name}:{self.tag}"
        return name

    @property
    def short_name(self) -> str:
        """Get short image name (without registry if default)."""
        if self.registry == self.DEFAULT_REGISTRY:
            repo = self.repository
            # Remove 'library/' prefix for official images
            if repo.startswith("library/"):
                repo = repo[8:]
            if self.digest:
                return f"{repo}@{self.digest}"
            if self.tag:
                return f"{repo}:{self.tag}"
            return repo
        return self.full_name

    def __str__(self) -> str:
        return self.short_name

    def __repr__(self) -> str:
        return f"ImageReference({self.full_name})"
