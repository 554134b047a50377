"""
Tests for the CLI interface.
"""
import os
import tempfile

import pytest
import yaml
from rich.console import Console
from typer.testing import CliRunner

import mes_sizer.cli.main as cli_main
from mes_sizer.cli.main import app, EXIT_CODE_PASS, EXIT_CODE_FAIL

runner = CliRunner()


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    """Render tables wide enough that cells are never wrapped."""
    monkeypatch.setattr(cli_main, "console", Console(width=200))


@pytest.fixture
def temp_dir():
    path = tempfile.mkdtemp()
    yield path
    import shutil
    shutil.rmtree(path, ignore_errors=True)


def _write_yaml(directory: str, data: dict, filename: str) -> str:
    path = os.path.join(directory, filename)
    with open(path, 'w', encoding='utf-8') as f:
        yaml.dump(data, f)
    return path


class TestCLI:
    """Test CLI commands."""

    def test_no_command_prints_hint(self):
        result = runner.invoke(app, [])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Use --help" in result.output

    def test_modules_lists_catalog(self):
        """Test modules are listed in declaration order."""
        result = runner.invoke(app, ["modules"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "core_mes" in result.output
        assert "always on" in result.output
        assert result.output.index("opcua_connector") < result.output.index("external_connectors")

    def test_storage_with_defaults(self):
        """Test the default storage scenario summary."""
        result = runner.invoke(app, ["storage"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Historian Storage Estimate" in result.output
        assert "600" in result.output
        assert "51.84M" in result.output
        assert "18.66B" in result.output
        assert "69.52" in result.output
        assert "41.71" in result.output
        assert "~0.07 TB" in result.output

    def test_storage_with_options(self):
        result = runner.invoke(app, ["storage", "--assets", "8", "--tags-per-asset", "100"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "800" in result.output

    def test_storage_zero_retention(self):
        result = runner.invoke(app, ["storage", "--retention", "0"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "0.00" in result.output

    def test_compute_with_defaults(self):
        """Test the mandatory-only compute summary."""
        result = runner.invoke(app, ["compute"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Core MES (mandatory)" in result.output
        assert "8.5" in result.output
        assert "16.5" in result.output
        assert "Intel Core i7-13700 (24 Threads)" in result.output

    def test_compute_with_module(self):
        result = runner.invoke(app, ["compute", "-m", "traceability"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Traceability / Genealogy" in result.output
        assert "9.5" in result.output
        assert "1.15" in result.output

    def test_compute_with_environment_preset(self):
        result = runner.invoke(app, ["compute", "--environment", "high_availability"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "16.5" in result.output
        assert "Intel Core i9-13900 (32 Threads)" in result.output

    def test_compute_unknown_module_fails(self):
        result = runner.invoke(app, ["compute", "-m", "nope"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Unknown module: nope" in result.output

    def test_compute_unknown_environment_fails(self):
        result = runner.invoke(app, ["compute", "--environment", "prod"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Unknown environment 'prod'" in result.output

    def test_estimate_runs_both(self):
        result = runner.invoke(app, ["estimate", "--assets", "4", "-m", "downtime"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Historian Storage Estimate" in result.output
        assert "Compute Estimate" in result.output
        assert "Downtime Tracking" in result.output

    def test_estimate_with_inputs_file(self, temp_dir):
        """Test scenario values are used and coerced garbage renders a placeholder."""
        path = _write_yaml(temp_dir, {
            "storage": {"tags_per_asset": "unknown"},
            "compute": {"modules": ["recipe_mgmt"]},
        }, "scenario.yaml")

        result = runner.invoke(app, ["estimate", "--inputs", path])

        assert result.exit_code == EXIT_CODE_PASS
        assert "—" in result.output
        assert "Recipe / Parameter Management" in result.output

    def test_estimate_option_overrides_inputs_file(self, temp_dir):
        path = _write_yaml(temp_dir, {"storage": {"asset_count": 1}}, "scenario.yaml")

        result = runner.invoke(app, ["estimate", "--inputs", path, "--assets", "10"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "1.50K" in result.output  # 10 assets * 150 tags

    def test_estimate_missing_inputs_file_fails(self):
        result = runner.invoke(app, ["estimate", "--inputs", "nonexistent.yaml"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Scenario file not found" in result.output

    def test_config_override(self, temp_dir):
        """Test a config file replaces the compute base."""
        path = _write_yaml(temp_dir, {"compute": {"base_cores": 4}}, "sizing.yaml")

        result = runner.invoke(app, ["--config", path, "compute"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "4.20" in result.output
        assert "Intel Core i5-13500 (14 Cores / 20 Threads)" in result.output

    def test_verbose_flag(self):
        result = runner.invoke(app, ["--verbose", "compute"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Compute Estimate" in result.output

    def test_missing_config_fails(self):
        result = runner.invoke(app, ["--config", "nonexistent.yaml", "modules"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Sizing config file not found" in result.output

    def test_invalid_config_fails(self, temp_dir):
        path = _write_yaml(temp_dir, {"compute": {"base_cores": -1}}, "sizing.yaml")

        result = runner.invoke(app, ["--config", path, "compute"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "base_cores cannot be negative" in result.output

    def test_compute_huge_environment_factor_renders_placeholder(self):
        result = runner.invoke(app, ["compute", "-e", "1.2e307"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "—" in result.output
        assert "Intel Xeon Silver 4410Y (Multi-Socket Server)" in result.output

    def test_config_strings_with_brackets_print_literally(self, temp_dir):
        """Test names and labels from a config file are not parsed as markup."""
        path = _write_yaml(temp_dir, {
            "modules": [{
                "id": "core_mes",
                "name": "Core [/x]",
                "description": "Base [bold]platform",
                "mandatory": True,
            }],
            "cpu_tiers": {
                "tiers": [{"max_cores": 64, "label": "Box [/b]"}],
                "fallback_label": "Rack [/r]",
            },
        }, "sizing.yaml")

        compute_result = runner.invoke(app, ["--config", path, "compute"])
        modules_result = runner.invoke(app, ["--config", path, "modules"])

        assert compute_result.exit_code == EXIT_CODE_PASS
        assert "Core [/x]" in compute_result.output
        assert "Box [/b]" in compute_result.output
        assert modules_result.exit_code == EXIT_CODE_PASS
        assert "Core [/x]" in modules_result.output
        assert "Base [bold]platform" in modules_result.output
