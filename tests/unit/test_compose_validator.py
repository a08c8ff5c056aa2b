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
Unit tests for the compose validators.
"""
import os
import pytest
from stackcheck.exceptions import ComposeValidationError
from stackcheck.MODELS.validation_report import Severity
from stackcheck.PARSERS.compose_parser import ComposeParser
from stackcheck.VALIDATORS.compose_validator import ComposeValidator
from stackcheck.VALIDATORS.image_contracts import EnvContract

FIXTURE = os.path.join(os.path.dirname(__file__), "..", "fixtures", "docker-compose.yml")
DIGEST = "sha256:4c1fed70a424f50ee25d714a7dfb824bea60d085300316b6644c1181c2869f84"


def validate(content, context=None, **kwargs):
    context = context if context is not None else {}
    parser = ComposeParser(context)
    raw = parser.load_from_string(content)
    config = parser.build(raw)
    return ComposeValidator(config, raw=raw, context=context, **kwargs).validate()


class TestFixture:
    """The two-service stack with a linked database and cache volumes."""

    def test_fixture_is_valid(self):
        report = ComposeValidator.from_file(FIXTURE, context={}).validate()
        assert report.ok
        assert report.issues == []

    def test_check_returns_report(self):
        report = ComposeValidator.from_file(FIXTURE, context={}).check()
        assert report.ok

    def test_require_pinned_flags_stock_postgres(self):
        report = ComposeValidator.from_file(FIXTURE, context={}, require_pinned=True).validate()
        assert report.ok
        assert report.codes() == ["unpinned-image"]
        assert report.warnings[0].path == "services.postgres.image"


class TestSchemaChecks:
    """Tests for checks on the raw document."""

    @pytest.mark.parametrize("version", ["2", "2.4", "3", "3.9", "1"])
    def test_supported_versions(self, version):
        report = validate(f'version: "{version}"\nservices:\n  app: {{image: app}}\n')
        assert "unsupported-version" not in report.codes()

    @pytest.mark.parametrize("version", ["4", "2.5", "latest"])
    def test_unsupported_versions(self, version):
        report = validate(f'version: "{version}"\nservices:\n  app: {{image: app}}\n')
        assert "unsupported-version" in report.codes()

    def test_numeric_version_warns(self):
        report = validate("version: 2\nservices:\n  app: {image: app}\n")
        assert report.ok
        assert report.codes() == ["version-not-string"]

    def test_unknown_keys(self):
        report = validate("""
version: "2"
x-common: {}
servcies: {}
services:
  app:
    image: app
    imagee: app
    x-note: fine
""")
        assert report.codes().count("unknown-top-level-key") == 1
        assert report.codes().count("unknown-service-key") == 1
        unknown = [i for i in report.issues if i.code == "unknown-service-key"][0]
        assert unknown.path == "services.app.imagee"

    def test_version_2_4_resource_keys(self):
        report = validate("""
version: "2.4"
services:
  a:
    image: app
    blkio_config:
      weight: 300
    cpu_rt_runtime: 400ms
    cpu_rt_period: 1400us
    device_cgroup_rules: ["c 1:3 mr"]
    uts: host
""")
        assert report.ok, report.codes()

    def test_include_is_a_top_level_key(self):
        report = validate("include: [other.yml]\nservices:\n  app: {image: app}\n")
        assert report.ok, report.codes()

    def test_volumes_only_file_is_not_legacy(self):
        report = validate("volumes:\n  data: {}\n")
        assert "unknown-service-key" not in report.codes()
        assert "missing-image" not in report.codes()

    def test_missing_image(self):
        report = validate('version: "2"\nservices:\n  app: {command: run}\n')
        assert "missing-image" in report.codes()

    def test_build_without_image_is_fine(self):
        report = validate('version: "2"\nservices:\n  app: {build: .}\n')
        assert report.ok

    def test_boolean_environment_value(self):
        report = validate("""
version: "2"
services:
  app:
    image: app
    environment:
      DEBUG: true
""")
        assert "invalid-environment-value" in report.codes()

    def test_environment_entry_without_name(self):
        report = validate("""
version: "2"
services:
  app:
    image: app
    environment: ["=oops"]
""")
        assert "invalid-environment-key" in report.codes()

    def test_invalid_volume_definition(self):
        report = validate("""
version: "2"
services:
  app: {image: app, volumes: ["data:/data"]}
volumes:
  data: "oops"
""")
        assert "invalid-volume-definition" in report.codes()

    def test_links_in_version_3_warn(self):
        report = validate("""
version: "3.8"
services:
  web: {image: web, links: [db]}
  db: {image: redis}
""")
        assert report.ok
        assert "links-unsupported" in report.codes()

    def test_legacy_file_checks_services(self):
        report = validate("web:\n  image: web\n  links: [db]\n  bogus: 1\ndb:\n  image: redis\n")
        assert report.codes() == ["unknown-service-key"]


class TestReferenceChecks:
    """Tests for links, volumes and dependencies."""

    def test_undefined_link(self):
        report = validate("""
version: "2"
services:
  rust: {image: app, links: ["postgres"]}
""")
        assert not report.ok
        issue = report.errors[0]
        assert issue.code == "undefined-link"
        assert issue.path == "services.rust.links[0]"
        assert "postgres" in issue.message

    def test_link_alias_is_not_a_service(self):
        report = validate("""
version: "2"
services:
  web: {image: web, links: ["db:database"]}
  db: {image: redis}
""")
        assert report.ok

    def test_undefined_volume(self):
        report = validate("""
version: "2"
services:
  rust:
    image: app
    volumes: [".:/source", "cargo_git:/root/.cargo/git"]
""")
        assert report.codes() == ["undefined-volume"]
        assert report.errors[0].path == "services.rust.volumes[1]"

    def test_legacy_named_volumes_need_no_declaration(self):
        report = validate("app:\n  image: app\n  volumes: ['cache:/cache']\n")
        assert report.ok

    def test_undefined_dependency(self):
        report = validate("""
version: "2"
services:
  web: {image: web, depends_on: [db], volumes_from: ["data", "container:external"]}
""")
        assert report.codes().count("undefined-dependency") == 2

    def test_self_reference(self):
        report = validate("""
version: "2"
services:
  web: {image: web, links: [web]}
""")
        assert report.codes() == ["self-reference"]

    def test_circular_dependency(self):
        report = validate("""
version: "2"
services:
  a: {image: a, links: [b]}
  b: {image: b, links: [a]}
""")
        assert report.codes() == ["circular-dependency"]
        assert "a -> b -> a" in report.errors[0].message

    def test_unused_volume_warns(self):
        report = validate("""
version: "2"
services:
  app: {image: app}
volumes:
  orphan: {}
  shared: {external: true}
""")
        assert report.ok
        assert report.codes() == ["unused-volume"]
        assert report.warnings[0].path == "volumes.orphan"


class TestValueChecks:
    """Tests for image, environment, port and mount checks."""

    @pytest.mark.parametrize("env", ["[]", '{POSTGRES_PASSWORD: ""}', '["POSTGRES_PASSWORD="]'])
    def test_postgres_requires_password(self, env):
        report = validate(f'version: "2"\nservices:\n  db:\n    image: postgres\n    environment: {env}\n')
        assert report.codes() == ["missing-required-environment"]
        assert report.errors[0].path == "services.db.environment"

    @pytest.mark.parametrize("image", ["postgres:9.6", f"postgres@{DIGEST}", "registry.example.com/library/postgres:15"])
    def test_contract_matches_any_reference_form(self, image):
        report = validate(f'version: "2"\nservices:\n  db:\n    image: "{image}"\n')
        assert report.codes() == ["missing-required-environment"]

    def test_postgres_trust_auth(self):
        report = validate("""
version: "2"
services:
  db:
    image: postgres
    environment: ["POSTGRES_HOST_AUTH_METHOD=trust"]
""")
        assert report.ok

    def test_passthrough_uses_host_context(self):
        content = 'version: "2"\nservices:\n  db:\n    image: postgres\n    environment: [POSTGRES_PASSWORD]\n'
        assert not validate(content, context={}).ok
        assert validate(content, context={"POSTGRES_PASSWORD": "hunter2"}).ok

    def test_env_file_satisfies_contract(self, tmp_path):
        (tmp_path / "db.env").write_text("POSTGRES_PASSWORD=test\n")
        compose_file = tmp_path / "docker-compose.yml"
        compose_file.write_text('version: "2"\nservices:\n  db:\n    image: postgres\n    env_file: db.env\n')
        report = ComposeValidator.from_file(str(compose_file), context={}).validate()
        assert report.ok

    def test_mysql_contract(self):
        report = validate('version: "2"\nservices:\n  db:\n    image: mysql:8\n    environment: {MYSQL_RANDOM_ROOT_PASSWORD: "yes"}\n')
        assert report.ok
        report = validate('version: "2"\nservices:\n  db:\n    image: mysql:8\n')
        assert report.codes() == ["missing-required-environment"]

    @pytest.mark.parametrize("env", [
        "{MARIADB_ROOT_PASSWORD: secret}",
        "{MARIADB_RANDOM_ROOT_PASSWORD: 'yes'}",
        "{MYSQL_ROOT_PASSWORD: secret}",
    ])
    def test_mariadb_contract_satisfied(self, env):
        report = validate(f'version: "2"\nservices:\n  db:\n    image: mariadb:11\n    environment: {env}\n')
        assert report.ok, report.codes()

    def test_mariadb_contract_unsatisfied(self):
        report = validate('version: "2"\nservices:\n  db:\n    image: mariadb:11\n    environment: {MARIADB_ROOT_PASSWORD: ""}\n')
        assert report.codes() == ["missing-required-environment"]
        report = validate('version: "2"\nservices:\n  db:\n    image: mariadb:11\n')
        assert report.codes() == ["missing-required-environment"]
        assert "MARIADB_ROOT_PASSWORD" in report.errors[0].message

    def test_custom_contracts(self):
        contracts = {"app": EnvContract(image="app", any_of=["API_KEY"])}
        report = validate('version: "2"\nservices:\n  web:\n    image: app\n', contracts=contracts)
        assert report.codes() == ["missing-required-environment"]
        report = validate('version: "2"\nservices:\n  db:\n    image: postgres\n', contracts=contracts)
        assert report.ok

    def test_empty_environment_value_warns(self):
        report = validate('version: "2"\nservices:\n  app:\n    image: app\n    environment: {LOG_LEVEL: ""}\n')
        assert report.ok
        assert report.codes() == ["empty-environment-value"]
        assert report.warnings[0].severity == Severity.WARNING

    def test_invalid_image_reference(self):
        report = validate('version: "2"\nservices:\n  app:\n    image: "app@sha256:abc"\n')
        assert report.codes() == ["invalid-image-reference"]

    def test_invalid_port(self):
        report = validate('version: "2"\nservices:\n  app:\n    image: app\n    ports: ["70000:80"]\n')
        assert report.codes() == ["invalid-port"]

    def test_invalid_volume_mode(self):
        report = validate("""
version: "2"
services:
  app:
    image: app
    volumes: ["./src:/src:ro,bogus"]
""")
        assert report.codes() == ["invalid-volume-mode"]
        assert "bogus" in report.errors[0].message

    def test_check_raises_with_report(self):
        parser = ComposeParser({})
        config = parser.parse_from_string('version: "2"\nservices:\n  rust: {image: app, links: [postgres]}\n')
        with pytest.raises(ComposeValidationError) as excinfo:
            ComposeValidator(config, context={}).check()
        assert excinfo.value.report.codes() == ["undefined-link"]
