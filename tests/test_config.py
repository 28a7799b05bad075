import json

import pytest

from gridlib.config import DEFAULT_CONFIG, load_config
from gridlib.errors import ConfigError


def write(tmp_path, data):
    path = tmp_path / 'config.json'
    path.write_text(json.dumps(data))
    return str(path)


def test_defaults_without_file():
    assert load_config() == DEFAULT_CONFIG


def test_file_values_override_defaults(tmp_path):
    config = load_config(write(tmp_path, {'interval': 750, 'parked_position': [5, 5]}))
    assert config['interval'] == 750
    assert config['parked_position'] == (5, 5)
    assert config['batch_count'] == DEFAULT_CONFIG['batch_count']


def test_overrides_skip_none(tmp_path):
    config = load_config(write(tmp_path, {'interval': 750}), overrides={'interval': None, 'scale': 3})
    assert config['interval'] == 750
    assert config['scale'] == 3


@pytest.mark.parametrize('data', [
    {'colour': 'red'},
    {'interval': -1},
    {'scale': 0},
    {'batch_count': 0},
    {'delete_mode': 'hide'},
    {'parked_position': [1]},
    {'surface_size': 'big'},
    {'pad_x': True},
])
def test_invalid_values(tmp_path, data):
    with pytest.raises(ConfigError):
        load_config(write(tmp_path, data))


def test_unreadable_file(tmp_path):
    path = tmp_path / 'broken.json'
    path.write_text('{not json')
    with pytest.raises(ConfigError):
        load_config(str(path))
