import pytest

from dynamo_migrate.errors import ConfigurationError
from dynamo_migrate.models.migration import MigrationConfig, Protocol

BASE = {
    "source": {"region": "eu-west-1"},
    "destination": {"endpoint": "http://scylla:8000"},
    "tables": [{"source": "users"}],
}


def config_with(**overrides):
    data = dict(BASE)
    data.update(overrides)
    return data


def test_minimal_config():
    config = MigrationConfig.from_dict(BASE)

    assert config.source.region == "eu-west-1"
    assert config.source.protocol == Protocol.SDK
    assert config.destination.protocol == Protocol.HTTP
    assert config.destination.region == "us-east-1"
    assert config.tables[0].destination == "users"
    assert config.options.sync_ttl is True
    assert config.options.ttl_offset_seconds == 900
    assert config.options.max_depth == 32
    assert config.delete is None


def test_original_table_keys_and_single_mapping():
    config = MigrationConfig.from_dict(
        config_with(tables={"sourceTableName": "a", "targetTableName": "b"})
    )
    assert [(t.source, t.destination) for t in config.tables] == [("a", "b")]


@pytest.mark.parametrize("missing", ["source", "destination", "tables"])
def test_missing_section(missing):
    data = dict(BASE)
    del data[missing]
    with pytest.raises(ConfigurationError) as exc:
        MigrationConfig.from_dict(data)
    assert exc.value.section == missing


def test_destination_requires_endpoint():
    with pytest.raises(ConfigurationError) as exc:
        MigrationConfig.from_dict(config_with(destination={"region": "us-east-1"}))
    assert (exc.value.section, exc.value.key) == ("destination", "endpoint")


def test_credentials_must_come_in_pairs():
    with pytest.raises(ConfigurationError) as exc:
        MigrationConfig.from_dict(config_with(source={"region": "us-east-1", "access_key": "AKIA"}))
    assert exc.value.key == "secret_key"


def test_camel_case_credentials():
    config = MigrationConfig.from_dict(
        config_with(source={"region": "us-east-1", "accessKey": "AKIA", "secretKey": "s3cr3t"})
    )
    assert config.source.has_static_credentials


def test_invalid_protocol():
    with pytest.raises(ConfigurationError):
        MigrationConfig.from_dict(config_with(destination={"endpoint": "http://x", "protocol": "grpc"}))


def test_invalid_max_depth():
    with pytest.raises(ConfigurationError):
        MigrationConfig.from_dict(config_with(options={"max_depth": 0}))


def test_delete_section_falls_back_to_destination():
    config = MigrationConfig.from_dict(
        config_with(delete={"table": "orders", "filter_attribute": "status", "filter_values": "A, B,"})
    )
    assert config.delete.filter_values == ["A", "B"]
    assert config.delete.endpoint is config.destination


def test_delete_only_config():
    config = MigrationConfig.from_dict(
        {"delete": {"table": "orders", "filter_attribute": "status", "filter_values": ["A"],
                    "endpoint": "http://localhost:8000"}},
        require_migration=False,
    )
    assert config.tables == []
    assert config.delete.endpoint.endpoint == "http://localhost:8000"


def test_delete_without_connection_settings():
    with pytest.raises(ConfigurationError):
        MigrationConfig.from_dict(
            {"delete": {"table": "orders", "filter_attribute": "status", "filter_values": ["A"]}},
            require_migration=False,
        )


def test_yaml_file(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text(
        "source:\n  region: us-east-1\n"
        "destination:\n  endpoint: http://scylla:8000\n  protocol: sdk\n"
        "tables:\n  - source: users\n    destination: users_copy\n"
        "options:\n  page_size: 100\n"
    )

    config = MigrationConfig.from_yaml_file(str(path))

    assert config.destination.protocol == Protocol.SDK
    assert config.options.page_size == 100


def test_yaml_file_missing(tmp_path):
    with pytest.raises(ConfigurationError):
        MigrationConfig.from_yaml_file(str(tmp_path / "nope.yml"))


def test_yaml_file_invalid(tmp_path):
    path = tmp_path / "bad.yml"
    path.write_text("source: [unclosed\n")
    with pytest.raises(ConfigurationError):
        MigrationConfig.from_yaml_file(str(path))


def test_non_numeric_max_depth():
    with pytest.raises(ConfigurationError) as exc:
        MigrationConfig.from_dict(config_with(options={"max_depth": "deep"}))
    assert (exc.value.section, exc.value.key) == ("options", "max_depth")


def test_non_numeric_timeout():
    with pytest.raises(ConfigurationError) as exc:
        MigrationConfig.from_dict(config_with(destination={"endpoint": "http://x", "timeout": "soon"}))
    assert (exc.value.section, exc.value.key) == ("destination", "timeout")


@pytest.mark.parametrize("key", ["ttl_offset_seconds", "page_size"])
def test_non_numeric_options(key):
    with pytest.raises(ConfigurationError) as exc:
        MigrationConfig.from_dict(config_with(options={key: [1]}))
    assert exc.value.key == key


def test_non_numeric_retry():
    with pytest.raises(ConfigurationError) as exc:
        MigrationConfig.from_dict(
            config_with(destination={"endpoint": "http://x", "retry": {"max_retries": "many"}})
        )
    assert exc.value.key == "max_retries"


def test_numeric_strings_are_accepted():
    config = MigrationConfig.from_dict(
        config_with(
            destination={"endpoint": "http://x", "timeout": "12.5"},
            options={"max_depth": "8", "page_size": "100"},
        )
    )
    assert config.destination.timeout == 12.5
    assert config.options.max_depth == 8
    assert config.options.page_size == 100


@pytest.mark.parametrize("raw, expected", [("false", False), ("True", True), (False, False)])
def test_quoted_booleans(raw, expected):
    config = MigrationConfig.from_dict(config_with(options={"sync_ttl": raw, "dry_run": raw}))
    assert config.options.sync_ttl is expected
    assert config.options.dry_run is expected


@pytest.mark.parametrize("key", ["sync_ttl", "dry_run"])
def test_non_boolean_flags(key):
    with pytest.raises(ConfigurationError) as exc:
        MigrationConfig.from_dict(config_with(options={key: "sometimes"}))
    assert (exc.value.section, exc.value.key) == ("options", key)


@pytest.mark.parametrize("raw", [[], "", " , "])
def test_empty_filter_values(raw):
    with pytest.raises(ConfigurationError) as exc:
        MigrationConfig.from_dict(
            config_with(delete={"table": "orders", "filter_attribute": "status", "filter_values": raw})
        )
    assert (exc.value.section, exc.value.key) == ("delete", "filter_values")
