"""Tests for scoring configuration."""

import json
import pytest
import tempfile
from pathlib import Path

from lead_engine.core.config import ScoringConfig, ScoringConfigManager, CONFIG_ENV_VAR
from lead_engine.exceptions import ConfigError


@pytest.fixture
def temp_data_dir():
    """Create temporary data directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config_manager(temp_data_dir):
    """Create config manager with temp storage."""
    return ScoringConfigManager(config_path=temp_data_dir / "scoring_config.json")


class TestScoringConfig:
    """Tests for ScoringConfig validation."""

    def test_defaults_are_valid(self):
        config = ScoringConfig()
        assert config.hot_threshold == 70
        assert config.warm_threshold == 40
        assert config.unknown_source_prior <= min(config.source_priors.values())

    def test_warm_above_hot_rejected(self):
        with pytest.raises(ConfigError):
            ScoringConfig(hot_threshold=50, warm_threshold=60)

    def test_threshold_out_of_range(self):
        with pytest.raises(ConfigError):
            ScoringConfig(hot_threshold=150)

    def test_unknown_prior_must_be_lowest(self):
        with pytest.raises(ConfigError):
            ScoringConfig(unknown_source_prior=99)

    def test_from_dict_merges_priors(self):
        """Partial source priors are merged over the defaults."""
        config = ScoringConfig.from_dict({"source_priors": {"referral": 50}})
        assert config.source_priors["referral"] == 50
        assert config.source_priors["contact_form"] == 45


class TestScoringConfigManager:
    """Tests for ScoringConfigManager."""

    def test_defaults_when_missing(self, config_manager):
        assert config_manager.config.hot_threshold == 70
        assert not config_manager.config_path.exists()

    def test_update_thresholds_persists(self, config_manager):
        config_manager.update_thresholds(hot=80, warm=50)

        reloaded = ScoringConfigManager(config_path=config_manager.config_path)
        assert reloaded.config.hot_threshold == 80
        assert reloaded.config.warm_threshold == 50

    def test_invalid_thresholds_keep_old_config(self, config_manager):
        with pytest.raises(ConfigError):
            config_manager.update_thresholds(hot=30, warm=60)
        assert config_manager.config.hot_threshold == 70
        assert not config_manager.config_path.exists()

    def test_set_source_prior(self, config_manager):
        config_manager.set_source_prior("referral", 55)
        data = json.loads(config_manager.config_path.read_text())
        assert data["source_priors"]["referral"] == 55

    def test_override_signal_weight(self, config_manager):
        config_manager.override_signal_weight("email_opened", 8)
        reloaded = ScoringConfigManager(config_path=config_manager.config_path)
        assert reloaded.config.signal_weight_overrides == {"email_opened": 8}

    def test_corrupt_file_falls_back_to_defaults(self, temp_data_dir):
        path = temp_data_dir / "scoring_config.json"
        path.write_text("{not json")
        manager = ScoringConfigManager(config_path=path)
        assert manager.config.hot_threshold == 70

    @pytest.mark.parametrize("payload", ["[1, 2]", "\"text\"", '{"source_priors": [1]}', '{"hot_threshold": "high"}'])
    def test_wrong_shape_falls_back_to_defaults(self, temp_data_dir, payload):
        """Valid JSON that is not a usable config object is ignored."""
        path = temp_data_dir / "scoring_config.json"
        path.write_text(payload)
        manager = ScoringConfigManager(config_path=path)
        assert manager.config.hot_threshold == 70
        assert manager.config.source_priors["contact_form"] == 45

    def test_inconsistent_file_falls_back_to_defaults(self, temp_data_dir):
        path = temp_data_dir / "scoring_config.json"
        path.write_text(json.dumps({"hot_threshold": 10, "warm_threshold": 20}))
        manager = ScoringConfigManager(config_path=path)
        assert manager.config.warm_threshold == 40

    def test_env_var_path(self, temp_data_dir, monkeypatch):
        path = temp_data_dir / "from_env.json"
        path.write_text(json.dumps({"hot_threshold": 90}))
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

        manager = ScoringConfigManager()
        assert manager.config_path == path
        assert manager.config.hot_threshold == 90
