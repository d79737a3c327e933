"""
Tests for the command line entry point.
"""

import glob
import os

import pytest

import main as main_module
from snake_dqn.ai.network import DQN, save_weights
from snake_dqn.ai.trainer import LoopDecision


@pytest.fixture
def run_config(small_config, tmp_path):
    """Tiny config that always explores, so episodes end quickly."""
    small_config.EPSILON_INIT = 1.0
    small_config.EPSILON_FINAL = 1.0
    small_config.MAX_NUM_FRAMES = 60
    small_config.SAVE_PATH = str(tmp_path / 'dqn')
    small_config.SEED = 1
    return small_config


class TestParseArgs:
    """Test argument parsing."""

    def test_defaults(self):
        args = main_module.parse_args([])
        assert args.save_path == './models/dqn'
        assert args.log_dir is None
        assert args.load_path is None
        assert args.cpu is False
        assert args.seed is None
        assert args.log_level is None

    def test_camel_case_flags(self):
        args = main_module.parse_args(['--savePath', 'a', '--logDir', 'b', '--loadPath', 'c'])
        assert (args.save_path, args.log_dir, args.load_path) == ('a', 'b', 'c')

    def test_kebab_case_flags(self):
        args = main_module.parse_args(['--save-path', 'a', '--log-dir', 'b', '--load-path', 'c'])
        assert (args.save_path, args.log_dir, args.load_path) == ('a', 'b', 'c')

    def test_invalid_log_level_rejected(self):
        with pytest.raises(SystemExit):
            main_module.parse_args(['--log-level', 'LOUD'])


class TestBuildConfig:
    """Test command line overrides."""

    def test_overrides_applied(self):
        args = main_module.parse_args([
            '--save-path', 'out', '--log-dir', 'tb', '--cpu', '--seed', '3', '--log-level', 'DEBUG'
        ])
        cfg = main_module.build_config(args)
        assert cfg.SAVE_PATH == 'out'
        assert cfg.TENSORBOARD_DIR == 'tb'
        assert cfg.FORCE_CPU is True
        assert cfg.SEED == 3
        assert cfg.LOG_LEVEL == 'DEBUG'
        assert cfg.DEVICE.type == 'cpu'

    def test_log_level_defaults_to_config(self):
        cfg = main_module.build_config(main_module.parse_args([]))
        assert cfg.LOG_LEVEL == 'INFO'


@pytest.mark.slow
class TestRunTraining:
    """Run the full pipeline on a tiny configuration."""

    def test_trains_until_frame_cap(self, run_config):
        result = main_module.run_training(run_config)
        assert result.stop_reason is LoopDecision.FRAME_CAP_REACHED
        assert result.frame_count >= run_config.MAX_NUM_FRAMES

    def test_loads_initial_weights(self, run_config, tmp_path):
        load_dir = str(tmp_path / 'pretrained')
        save_weights(DQN(5, 5, 3, config=run_config), load_dir)
        result = main_module.run_training(run_config, load_path=load_dir)
        assert result.frame_count >= run_config.MAX_NUM_FRAMES

    def test_missing_load_path_raises(self, run_config, tmp_path):
        with pytest.raises(FileNotFoundError):
            main_module.run_training(run_config, load_path=str(tmp_path / 'missing'))

    def test_writes_tensorboard_events(self, run_config, tmp_path):
        run_config.TENSORBOARD_DIR = str(tmp_path / 'tb')
        main_module.run_training(run_config)
        assert glob.glob(os.path.join(run_config.TENSORBOARD_DIR, 'events.out.tfevents.*'))


class TestMain:
    """Test the main() wiring without running training."""

    def test_main_builds_config_and_trains(self, monkeypatch, tmp_path):
        captured = {}

        def fake_run_training(config, load_path=None):
            captured['config'] = config
            captured['load_path'] = load_path

        monkeypatch.setattr(main_module, 'run_training', fake_run_training)
        monkeypatch.setattr(main_module, 'setup_logging', lambda **kwargs: None)
        monkeypatch.setattr(main_module, 'get_log_path', lambda: tmp_path / 'training.log')

        main_module.main(['--cpu', '--seed', '7', '--load-path', str(tmp_path)])

        assert captured['config'].SEED == 7
        assert captured['config'].FORCE_CPU is True
        assert captured['load_path'] == str(tmp_path)

    def test_main_logs_log_file_path(self, monkeypatch, tmp_path, caplog):
        log_file = tmp_path / 'training_run.log'
        monkeypatch.setattr(main_module, 'run_training', lambda config, load_path=None: None)
        monkeypatch.setattr(main_module, 'setup_logging', lambda **kwargs: None)
        monkeypatch.setattr(main_module, 'get_log_path', lambda: log_file)

        main_module.main(['--cpu'])

        assert f"Logging to {log_file}" in caplog.text
