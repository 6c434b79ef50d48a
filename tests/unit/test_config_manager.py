"""
Unit tests for ConfigManager and ProcessingParameters.

Tests environment variable handling, marker profile loading (JSON and YAML),
profile validation and the configuration summary.
"""

import json

import pytest

from dmr_extractor.config import ConfigManager, ProcessingParameters
from dmr_extractor.config.processing_defaults import ProcessingDefaults, default_worker_count
from dmr_extractor.exceptions import ConfigurationError
from dmr_extractor.models import DMR_NAMESPACE, MarkerConfig


ENV_VARS = (
    'DMR_EXTRACTOR_PARSER', 'DMR_EXTRACTOR_WORKERS', 'DMR_EXTRACTOR_STRICT',
    'DMR_EXTRACTOR_QUEUE_DEPTH_FACTOR', 'DMR_EXTRACTOR_ENCODING', 'DMR_EXTRACTOR_PROFILE_PATH',
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestProcessingParameters:

    def test_defaults(self):
        params = ProcessingParameters.from_environment()
        assert params.parser == ProcessingDefaults.PARSER
        assert params.workers is None
        assert params.worker_count == default_worker_count()
        assert params.strict is True

    def test_default_worker_count_leaves_one_core(self, monkeypatch):
        monkeypatch.setattr('multiprocessing.cpu_count', lambda: 8)
        assert default_worker_count() == 7
        monkeypatch.setattr('multiprocessing.cpu_count', lambda: 1)
        assert default_worker_count() == 1

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv('DMR_EXTRACTOR_PARSER', 'xml')
        monkeypatch.setenv('DMR_EXTRACTOR_WORKERS', '3')
        monkeypatch.setenv('DMR_EXTRACTOR_STRICT', 'false')
        monkeypatch.setenv('DMR_EXTRACTOR_QUEUE_DEPTH_FACTOR', '4')
        monkeypatch.setenv('DMR_EXTRACTOR_ENCODING', 'latin-1')
        params = ProcessingParameters.from_environment()
        assert params.parser == 'xml'
        assert params.worker_count == 3
        assert params.strict is False
        assert params.queue_depth_factor == 4
        assert params.encoding == 'latin-1'

    @pytest.mark.parametrize("name,value", [
        ('DMR_EXTRACTOR_PARSER', 'regex'),
        ('DMR_EXTRACTOR_WORKERS', 'many'),
        ('DMR_EXTRACTOR_WORKERS', '0'),
        ('DMR_EXTRACTOR_QUEUE_DEPTH_FACTOR', '-1'),
    ])
    def test_invalid_environment_values(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ConfigurationError):
            ProcessingParameters.from_environment()


class TestMarkerProfiles:

    def test_no_profile_gives_defaults(self):
        manager = ConfigManager(ProcessingParameters())
        assert manager.get_marker_config() == MarkerConfig()
        assert manager.get_marker_config().namespaces == {"ns": DMR_NAMESPACE}

    def test_json_profile(self, tmp_path):
        profile = tmp_path / "markers.json"
        profile.write_text(json.dumps({"key_delimiter": "|", "vehicle_sentinel": 1}), encoding="utf-8")
        markers = ConfigManager(ProcessingParameters()).get_marker_config(profile)
        assert markers.key_delimiter == "|"
        assert markers.vehicle_sentinel == "1"
        assert markers.record_open == "<ns:Statistik>"

    def test_yaml_profile_with_markers_section(self, tmp_path):
        profile = tmp_path / "markers.yaml"
        profile.write_text(
            "markers:\n"
            "  record_open: '<dmr:Statistik>'\n"
            "  record_close: '</dmr:Statistik>'\n"
            "  namespaces:\n"
            "    dmr: 'http://skat.dk/dmr/2007/05/31/'\n",
            encoding="utf-8",
        )
        markers = ConfigManager(ProcessingParameters()).get_marker_config(str(profile))
        assert markers.record_open == "<dmr:Statistik>"
        assert markers.namespaces == {"dmr": DMR_NAMESPACE}

    def test_profile_from_environment_is_cached(self, tmp_path, monkeypatch):
        profile = tmp_path / "markers.yml"
        profile.write_text("key_delimiter: ','\n", encoding="utf-8")
        monkeypatch.setenv('DMR_EXTRACTOR_PROFILE_PATH', str(profile))
        manager = ConfigManager()
        first = manager.get_marker_config()
        profile.write_text("key_delimiter: '|'\n", encoding="utf-8")
        assert manager.get_marker_config() is first
        assert first.key_delimiter == ","

    @pytest.mark.parametrize("name,content", [
        ("unknown.json", '{"colour": "red"}'),
        ("broken.json", '{"key_delimiter": '),
        ("list.yaml", "- a\n- b\n"),
        ("empty_marker.json", '{"brand": ""}'),
        ("namespaces.json", '{"namespaces": "ns"}'),
        ("markers.toml", 'key_delimiter = ";"'),
    ])
    def test_invalid_profiles(self, tmp_path, name, content):
        profile = tmp_path / name
        profile.write_text(content, encoding="utf-8")
        with pytest.raises(ConfigurationError):
            ConfigManager(ProcessingParameters()).get_marker_config(profile)

    def test_missing_profile(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            ConfigManager(ProcessingParameters()).get_marker_config(tmp_path / "absent.yaml")


def test_configuration_summary_reflects_environment(monkeypatch):
    monkeypatch.setenv('DMR_EXTRACTOR_PARSER', 'xml')
    monkeypatch.setenv('DMR_EXTRACTOR_WORKERS', '2')
    summary = ConfigManager().get_configuration_summary()
    assert summary['parser'] == 'xml'
    assert summary['workers'] == 2


def test_processing_defaults_to_dict():
    defaults = ProcessingDefaults.to_dict()
    assert defaults['PARSER'] == 'string'
    assert defaults['OUTFILE'] == 'out.csv'
    assert 'to_dict' not in defaults
