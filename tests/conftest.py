import json

import pytest

from sddlaudit.config import AuditConfig


@pytest.fixture
def write_export(tmp_path):
    """Write a list of record dicts as <domain>.json under tmp_path/exports."""
    folder = tmp_path / "exports"
    folder.mkdir(exist_ok=True)

    def _write(domain, records):
        path = folder / f"{domain}.json"
        path.write_text(json.dumps(records), encoding="utf-8")
        return path

    _write.folder = folder
    return _write


@pytest.fixture
def make_config(tmp_path):
    def _make(input_dir, **overrides):
        config = {
            "input": {"input_dir": str(input_dir)},
            "catalog": {"cache_dir": str(tmp_path / "cache")},
            "output": {"output_dir": str(tmp_path / "output")},
            "offline": True,
            "verbose": False,
        }
        for key, value in overrides.items():
            if isinstance(value, dict) and isinstance(config.get(key), dict):
                config[key].update(value)
            else:
                config[key] = value
        return AuditConfig.from_dict(config)

    return _make
