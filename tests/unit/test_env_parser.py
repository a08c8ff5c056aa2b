from stackcheck.MODELS.service_definition import ServiceDefinition
from stackcheck.PARSERS.env_parser import EnvParser

def test_parse_from_string():
    content = """
    KEY1=VALUE1
    KEY2 = VALUE2
    # This is a comment
    KEY3="VALUE3" # Trailing comment
    KEY4='VALUE4'
    export KEY5=VALUE5
    """
    env = EnvParser.parse_from_string(content)
    assert env['KEY1'] == 'VALUE1'
    assert env['KEY2'] == 'VALUE2'
    assert env['KEY3'] == 'VALUE3'
    assert env['KEY4'] == 'VALUE4'
    assert env['KEY5'] == 'VALUE5'
    assert 'KEY6' not in env

def test_parse_does_not_expand_references(tmp_path):
    env_file = tmp_path / "app.env"
    env_file.write_text("BASE=/srv\nPATH_WITH_REF=${BASE}/data\n")
    env = EnvParser.parse(str(env_file))
    assert env['PATH_WITH_REF'] == '${BASE}/data'

def test_build_context_reads_project_env(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("PG_TAG=9.6\nSHARED=from-file\n")
    monkeypatch.setenv("SHARED", "from-shell")
    context = EnvParser.build_context(str(tmp_path))
    assert context['PG_TAG'] == '9.6'
    assert context['SHARED'] == 'from-shell'

def test_build_context_explicit_file(tmp_path):
    custom = tmp_path / "custom.env"
    custom.write_text("ONLY_HERE=1\n")
    context = EnvParser.build_context(str(tmp_path), str(custom))
    assert context['ONLY_HERE'] == '1'

def test_build_context_missing_explicit_file(tmp_path, monkeypatch):
    monkeypatch.setenv("FROM_SHELL", "yes")
    context = EnvParser.build_context(str(tmp_path), str(tmp_path / "nope.env"))
    assert context['FROM_SHELL'] == 'yes'

def test_resolve_service_environment(tmp_path):
    (tmp_path / "db.env").write_text("POSTGRES_PASSWORD=from-file\nPOSTGRES_USER=ruma\n")
    service = ServiceDefinition(
        name="postgres",
        image="postgres",
        environment={"POSTGRES_PASSWORD": "inline"},
        environment_files=["db.env", "missing.env"],
    )
    env = EnvParser.resolve_service_environment(service, str(tmp_path))
    assert env == {"POSTGRES_PASSWORD": "inline", "POSTGRES_USER": "ruma"}
