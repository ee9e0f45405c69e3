"""
Unit Tests - Command Line Interface
"""
import json
import sys

import pytest
import structlog

from coffee_expansion import cli


@pytest.fixture(autouse=True)
def logs_on_stderr(monkeypatch):
    """Keep log lines off stdout, which carries the command output"""
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)
    structlog.reset_defaults()
    structlog.configure(logger_factory=structlog.PrintLoggerFactory(sys.stderr))
    yield
    structlog.reset_defaults()


@pytest.fixture
def data_dir(tmp_path):
    directory = tmp_path / "data"
    assert cli.main([
        "generate", "--output-dir", str(directory), "--customers", "60", "--sales", "400", "--seed", "5",
    ]) == 0
    return directory


class TestCli:
    """Tests for the coffee-expansion command"""

    def test_generate_writes_csv_files(self, data_dir):
        assert sorted(p.name for p in data_dir.iterdir()) == [
            "city.csv", "customers.csv", "products.csv", "sales.csv",
        ]

    def test_recommend_json(self, data_dir, capsys):
        capsys.readouterr()

        exit_code = cli.main(["recommend", "--data-dir", str(data_dir), "--k", "3", "--format", "json"])

        assert exit_code == 0
        payload = json.loads(capsys.readouterr().out)
        assert [c["rank"] for c in payload["cities"]] == [1, 2, 3]

    def test_recommend_with_weight_override(self, data_dir, capsys):
        capsys.readouterr()

        exit_code = cli.main([
            "recommend", "--data-dir", str(data_dir), "--format", "json", "--revenue-weight", "0.9",
        ])

        assert exit_code == 0
        assert json.loads(capsys.readouterr().out)["weights"]["revenue_weight"] in ("0.9", 0.9)

    def test_recommend_writes_file(self, data_dir, tmp_path):
        output = tmp_path / "reports" / "top.md"

        assert cli.main(["recommend", "--data-dir", str(data_dir), "--output", str(output)]) == 0
        assert output.read_text(encoding="utf-8").startswith("# Top 3 Cities")

    def test_insufficient_cities_exit_code(self, data_dir, capsys):
        exit_code = cli.main(["recommend", "--data-dir", str(data_dir), "--k", "50"])

        assert exit_code == cli.EXIT_PIPELINE_ERROR
        assert "only 14 have valid scores" in capsys.readouterr().err

    def test_missing_data_dir_exit_code(self, tmp_path):
        assert cli.main(["recommend", "--data-dir", str(tmp_path / "nowhere")]) == cli.EXIT_PIPELINE_ERROR

    def test_invalid_weight_rejected(self, data_dir):
        with pytest.raises(SystemExit):
            cli.main(["recommend", "--data-dir", str(data_dir), "--rent-weight", "-1"])

    @pytest.mark.parametrize("argv", [
        ["recommend", "--k", "0"],
        ["insights", "top-products", "--n", "0"],
    ])
    def test_non_positive_counts_rejected(self, data_dir, argv, capsys):
        """Test counts below 1 are usage errors, not tracebacks"""
        with pytest.raises(SystemExit) as exc_info:
            cli.main(argv + ["--data-dir", str(data_dir)])

        assert exc_info.value.code == 2
        assert "must be at least 1" in capsys.readouterr().err

    def test_insights(self, data_dir, capsys):
        capsys.readouterr()

        assert cli.main(["insights", "cities", "--data-dir", str(data_dir)]) == 0
        assert "city_name" in capsys.readouterr().out

    def test_seed_db(self, data_dir, tmp_path, capsys):
        url = f"sqlite:///{tmp_path / 'coffee.db'}"

        assert cli.main(["seed-db", "--data-dir", str(data_dir), "--database-url", url]) == 0
        assert "sales: 400 rows" in capsys.readouterr().out

        assert cli.main(["recommend", "--source", "database", "--database-url", url]) == 0
