"""
Tests for configuration loading
"""

from pathlib import Path

import pytest
import yaml

from pulseguard.core.config import (
    CONFIG_FILENAME,
    DEFAULT_API_BASE_URL,
    PulseGuardConfig,
    generate_default_config,
)
from pulseguard.core.errors import InvalidConfiguration


class TestPulseGuardConfig:
    """Tests for PulseGuardConfig.load."""

    def test_defaults(self, temp_dir: Path):
        config = PulseGuardConfig.load(scan_dir=temp_dir, environ={})

        assert config.scan_dir == temp_dir
        assert config.debug is False
        assert config.branch_name == "main"
        assert config.api.base_url == DEFAULT_API_BASE_URL
        assert config.api.project_id is None
        assert config.secrets.path_depth == 8
        assert config.secrets.min_secret_length == 10
        assert config.secrets.scan_git_history is False
        assert "axios" in config.sbom.exclude_components

    def test_environment(self, temp_dir: Path):
        config = PulseGuardConfig.load(scan_dir=temp_dir, environ={
            "PROJECT_ID": "p-1",
            "X_API_KEY": "k",
            "X_SECRET_KEY": "s",
            "X_TENANT_KEY": "t",
            "API_BASE_URL": "https://api.example/open-pulse/project",
            "GITLEAKS_PATH": "/opt/gitleaks",
            "DEBUG_MODE": "TRUE",
            "DISPLAY_NAME": "web-app",
        })

        assert config.api.project_id == "p-1"
        assert config.api.api_key == "k"
        assert config.api.secret_key == "s"
        assert config.api.tenant_key == "t"
        assert config.api.base_url == "https://api.example/open-pulse/project"
        assert config.tools.gitleaks == "/opt/gitleaks"
        assert config.debug is True
        assert config.sbom.display_name == "web-app"

    def test_empty_project_id_is_unset(self, temp_dir: Path):
        config = PulseGuardConfig.load(scan_dir=temp_dir, environ={"PROJECT_ID": ""})
        assert config.api.project_id is None

    def test_scan_dir_from_environment(self, temp_dir: Path):
        config = PulseGuardConfig.load(environ={"SCAN_DIR": str(temp_dir)})
        assert config.scan_dir == temp_dir

    @pytest.mark.parametrize("env, expected", [
        ({"GITHUB_REF_NAME": "feature/x", "BRANCH_NAME": "other"}, "feature/x"),
        ({"CI_COMMIT_REF_NAME": "release"}, "release"),
        ({"BRANCH_NAME": "develop"}, "develop"),
        ({}, "main"),
    ])
    def test_branch_name(self, temp_dir: Path, env: dict, expected: str):
        assert PulseGuardConfig.load(scan_dir=temp_dir, environ=env).branch_name == expected

    def test_yaml_file(self, temp_dir: Path):
        (temp_dir / CONFIG_FILENAME).write_text(
            yaml.safe_dump({
                "secrets": {
                    "skip_files": ["*.example"],
                    "exclude_dirs": ["dist"],
                    "min_secret_length": 16,
                    "path_depth": 0,
                    "fail_on_findings": False,
                },
                "sbom": {"exclude_components": ["left-pad"]},
                "api": {"timeout": 30},
                "tools": {"trivy": "/usr/local/bin/trivy"},
            }),
            encoding="utf-8",
        )

        config = PulseGuardConfig.load(scan_dir=temp_dir, environ={})

        assert config.secrets.skip_files == ["*.example"]
        assert config.secrets.exclude_dirs == ["dist"]
        assert config.secrets.min_secret_length == 16
        assert config.secrets.path_depth == 0
        assert config.secrets.fail_on_findings is False
        assert config.sbom.exclude_components == ["left-pad"]
        assert config.api.timeout == 30
        assert config.tools.trivy == "/usr/local/bin/trivy"

    def test_skip_files_env_extends_yaml(self, temp_dir: Path):
        (temp_dir / CONFIG_FILENAME).write_text("secrets:\n  skip_files: [a.txt]\n", encoding="utf-8")
        config = PulseGuardConfig.load(scan_dir=temp_dir, environ={"SKIP_FILES": "b.txt, *.bak ,"})
        assert config.secrets.skip_files == ["a.txt", "b.txt", "*.bak"]

    def test_explicit_config_path(self, temp_dir: Path):
        other = temp_dir / "ci.yaml"
        other.write_text("configs:\n  fail_on_critical: false\n", encoding="utf-8")
        config = PulseGuardConfig.load(scan_dir=temp_dir, environ={}, config_path=other)
        assert config.configs.fail_on_critical is False

    def test_empty_yaml(self, temp_dir: Path):
        (temp_dir / CONFIG_FILENAME).write_text("", encoding="utf-8")
        config = PulseGuardConfig.load(scan_dir=temp_dir, environ={})
        assert config.secrets.skip_files == []

    def test_invalid_yaml(self, temp_dir: Path):
        (temp_dir / CONFIG_FILENAME).write_text("secrets: [unclosed\n", encoding="utf-8")
        with pytest.raises(InvalidConfiguration):
            PulseGuardConfig.load(scan_dir=temp_dir, environ={})

    def test_non_mapping_yaml(self, temp_dir: Path):
        (temp_dir / CONFIG_FILENAME).write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(InvalidConfiguration):
            PulseGuardConfig.load(scan_dir=temp_dir, environ={})

    def test_generated_default_loads(self, temp_dir: Path):
        (temp_dir / CONFIG_FILENAME).write_text(generate_default_config(), encoding="utf-8")
        config = PulseGuardConfig.load(scan_dir=temp_dir, environ={})
        assert config.secrets.skip_files == ["*.example"]
        assert config.sbom.spec_version == "1.4"

    def test_empty_keys_fall_back_to_defaults(self, temp_dir: Path):
        (temp_dir / CONFIG_FILENAME).write_text(
            "secrets:\n  skip_files:\n  exclude_dirs:\n  min_secret_length:\n"
            "sbom:\n  exclude_components:\n  display_name:\n"
            "api:\n",
            encoding="utf-8",
        )
        config = PulseGuardConfig.load(scan_dir=temp_dir, environ={})

        assert config.secrets.skip_files == []
        assert config.secrets.exclude_dirs == []
        assert config.secrets.min_secret_length == 10
        assert config.sbom.display_name == "sbom"
        assert "get-intrinsic" in config.sbom.exclude_components
        assert config.api.timeout == 120

    @pytest.mark.parametrize("content", [
        "secrets: just-a-string\n",
        "api: [1, 2]\n",
        "secrets:\n  min_secret_length: abc\n",
        "secrets:\n  min_secret_length: 0\n",
        "secrets:\n  path_depth: -1\n",
        "secrets:\n  path_depth: true\n",
        "secrets:\n  skip_files: {a: b}\n",
        "api:\n  timeout: soon\n",
    ])
    def test_wrong_types_are_invalid(self, temp_dir: Path, content: str):
        (temp_dir / CONFIG_FILENAME).write_text(content, encoding="utf-8")
        with pytest.raises(InvalidConfiguration):
            PulseGuardConfig.load(scan_dir=temp_dir, environ={})

    def test_single_string_list(self, temp_dir: Path):
        (temp_dir / CONFIG_FILENAME).write_text("secrets:\n  skip_files: a.txt\n", encoding="utf-8")
        config = PulseGuardConfig.load(scan_dir=temp_dir, environ={})
        assert config.secrets.skip_files == ["a.txt"]

    def test_missing_explicit_config_path(self, temp_dir: Path):
        with pytest.raises(InvalidConfiguration) as exc_info:
            PulseGuardConfig.load(scan_dir=temp_dir, environ={}, config_path=temp_dir / "nope.yaml")
        assert "file not found" in str(exc_info.value)
