"""End-to-end tests running the extractor from a YAML config file."""

import logging

import yaml

from layer_extractor.cli import run_cli

ID_FIELDS = [{"name": "id", "type": "esriFieldTypeInteger"}]


def _write_config(tmp_path, config):
    config_path = tmp_path / "config.yaml"
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config, f, allow_unicode=True)
    return config_path


def test_run_end_to_end(layer_server, tmp_path):
    """Test fetch then convert for one catalog with a layer range."""
    layer_server.add_layer(1, ID_FIELDS, [{"id": 7}])
    layer_server.add_layer(2, ID_FIELDS, [{"id": 7}])

    config_path = _write_config(
        tmp_path,
        {
            "layers": "1-2",
            "catalogs": [
                {
                    "language": "en",
                    "base_url": layer_server.base_url,
                    "layer_names": ["Roads", "Rivers"],
                    "output_dir": "output/en",
                }
            ],
        },
    )

    exit_code = run_cli(str(config_path))
    assert exit_code == 0

    output_dir = tmp_path / "output" / "en"
    assert sorted(p.name for p in output_dir.iterdir() if p.is_file()) == ["Rivers.json", "Roads.json"]
    for name in ("Roads", "Rivers"):
        csv_file = output_dir / "csv" / f"{name}.json.csv"
        assert csv_file.read_bytes() == b"id\n7\n"


def test_run_two_language_catalogs(layer_server, tmp_path):
    """Test that each catalog uses its own name table and output directory."""
    fields = [
        {"name": "OBJECTID", "type": "esriFieldTypeOID"},
        {"name": "NAME", "type": "esriFieldTypeString"},
    ]
    layer_server.add_layer(1, fields, [{"OBJECTID": 1, "NAME": " Ottawa "}])

    config_path = _write_config(
        tmp_path,
        {
            "layers": "1",
            "catalogs": [
                {
                    "language": "en",
                    "base_url": layer_server.base_url,
                    "layer_names": "Cities",
                    "output_dir": "en",
                },
                {
                    "language": "fr",
                    "base_url": layer_server.base_url,
                    "layer_names": "Villes",
                    "output_dir": "fr",
                },
            ],
        },
    )

    assert run_cli(str(config_path)) == 0

    assert (tmp_path / "en" / "csv" / "Cities.json.csv").read_text(encoding="utf-8") == 'OBJECTID,NAME\n1,"Ottawa"\n'
    assert (tmp_path / "fr" / "csv" / "Villes.json.csv").read_text(encoding="utf-8") == 'OBJECTID,NAME\n1,"Ottawa"\n'


def test_run_with_failed_layer_still_succeeds(layer_server, tmp_path):
    """Test that per-layer failures are logged without failing the run."""
    layer_server.add_layer(2, ID_FIELDS, [{"id": 2}])

    config_path = _write_config(
        tmp_path,
        {
            "layers": "1-2",
            "file_logging": True,
            "log_file": "logs/run.txt",
            "catalogs": [
                {
                    "language": "en",
                    "base_url": layer_server.base_url,
                    "layer_names": "Roads,Rivers",
                    "output_dir": "en",
                }
            ],
        },
    )

    assert run_cli(str(config_path)) == 0

    assert not (tmp_path / "en" / "Roads.json").exists()
    assert (tmp_path / "en" / "csv" / "Rivers.json.csv").read_text(encoding="utf-8") == "id\n2\n"

    log_text = (tmp_path / "logs" / "run.txt").read_text(encoding="utf-8")
    assert "/MapServer/1/query" in log_text


def test_run_rfc4180_escaping(layer_server, tmp_path):
    """Test that strict escaping can be selected in the config."""
    layer_server.add_layer(
        1,
        [{"name": "NAME", "type": "esriFieldTypeString"}],
        [{"NAME": 'Main St, "North"'}],
    )

    config_path = _write_config(
        tmp_path,
        {
            "layers": "1",
            "csv_escaping": "rfc4180",
            "catalogs": [
                {"language": "en", "base_url": layer_server.base_url, "layer_names": "Streets", "output_dir": "en"}
            ],
        },
    )

    assert run_cli(str(config_path)) == 0
    assert (tmp_path / "en" / "csv" / "Streets.json.csv").read_text(encoding="utf-8") == (
        'NAME\n"Main St, ""North"""\n'
    )


def test_missing_config_file(tmp_path):
    """Test that a missing config file fails the run."""
    assert run_cli(str(tmp_path / "missing.yaml")) == 1


def test_missing_required_keys(tmp_path, caplog):
    """Test that configuration errors are reported at the top level."""
    config_path = _write_config(tmp_path, {"layers": "1-2"})

    with caplog.at_level(logging.ERROR):
        assert run_cli(str(config_path)) == 1

    assert "Configuration" in caplog.text


def test_invalid_layer_spec(tmp_path):
    """Test that malformed layer specs are configuration errors."""
    config_path = _write_config(
        tmp_path,
        {
            "layers": "1-x",
            "catalogs": [{"language": "en", "base_url": "http://x", "layer_names": "A", "output_dir": "en"}],
        },
    )

    assert run_cli(str(config_path)) == 1


def test_convert_only(tmp_path):
    """Test running conversion without fetching."""
    from tests.layer_helper import write_layer

    write_layer(tmp_path / "en" / "Roads.json", ID_FIELDS, [{"id": 5}])
    config_path = _write_config(
        tmp_path,
        {
            "layers": "1",
            "catalogs": [{"language": "en", "base_url": "http://127.0.0.1:1", "layer_names": "Roads", "output_dir": "en"}],
        },
    )

    assert run_cli(str(config_path), fetch=False) == 0
    assert (tmp_path / "en" / "csv" / "Roads.json.csv").read_text(encoding="utf-8") == "id\n5\n"


def test_blocked_catalog_does_not_stop_next_catalog(tmp_path, caplog):
    """Test that an unusable csv directory in one catalog leaves the other catalog converting."""
    from tests.layer_helper import write_layer

    write_layer(tmp_path / "en" / "Roads.json", ID_FIELDS, [{"id": 1}])
    (tmp_path / "en" / "csv").write_text("not a directory", encoding="utf-8")
    write_layer(tmp_path / "fr" / "Routes.json", ID_FIELDS, [{"id": 2}])

    config_path = _write_config(
        tmp_path,
        {
            "layers": "1",
            "catalogs": [
                {"language": "en", "base_url": "http://127.0.0.1:1", "layer_names": "Roads", "output_dir": "en"},
                {"language": "fr", "base_url": "http://127.0.0.1:1", "layer_names": "Routes", "output_dir": "fr"},
            ],
        },
    )

    with caplog.at_level(logging.ERROR):
        assert run_cli(str(config_path), fetch=False) == 0

    assert (tmp_path / "fr" / "csv" / "Routes.json.csv").read_text(encoding="utf-8") == "id\n2\n"
    assert str(tmp_path / "en") in caplog.text


def test_uncreatable_output_directory_does_not_stop_next_catalog(layer_server, tmp_path, caplog):
    """Test that a catalog whose output path is a file is logged and skipped."""
    layer_server.add_layer(1, ID_FIELDS, [{"id": 3}])
    (tmp_path / "en").write_text("not a directory", encoding="utf-8")

    config_path = _write_config(
        tmp_path,
        {
            "layers": "1",
            "catalogs": [
                {"language": "en", "base_url": layer_server.base_url, "layer_names": "Roads", "output_dir": "en"},
                {"language": "fr", "base_url": layer_server.base_url, "layer_names": "Routes", "output_dir": "fr"},
            ],
        },
    )

    with caplog.at_level(logging.ERROR):
        assert run_cli(str(config_path)) == 0

    assert (tmp_path / "fr" / "csv" / "Routes.json.csv").read_text(encoding="utf-8") == "id\n3\n"
    assert "Error creating output directory" in caplog.text
