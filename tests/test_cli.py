"""Tests for the command-line interface."""

import json
from pathlib import Path

import pytest
import yaml

from totalreturn.cli import main


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """CSV files for two symbols with a dividend and a split."""
    header = "date,open,high,low,close,volume,adj_close,dividend,split"
    (tmp_path / "AAA.csv").write_text(
        "\n".join(
            [
                header,
                "2020-01-02,100,101,99,100,1000,,,",
                "2020-01-03,100,111,99,110,1000,,1.0,",
                "2020-01-06,55,56,54,55,1000,,,2",
            ]
        )
        + "\n"
    )
    (tmp_path / "BBB.csv").write_text(
        "\n".join([header, "2020-01-03,50,51,49,50,500,,,", "2020-01-06,50,51,49,52,500,,,"])
        + "\n"
    )
    return tmp_path


class TestReturnsCommand:
    """Tests for the returns subcommand."""

    def test_json_output(self, data_dir: Path, capsys: pytest.CaptureFixture) -> None:
        """--json prints the report."""
        code = main(
            [
                "returns",
                "aaa,bbb",
                "--horizon",
                "max",
                "--source",
                "csv",
                "--data-dir",
                str(data_dir),
                "--json",
            ]
        )

        assert code == 0
        report = json.loads(capsys.readouterr().out)
        assert report["meta"]["symbols"] == ["AAA", "BBB"]
        assert report["dates"] == ["2020-01-02", "2020-01-03", "2020-01-06"]
        aaa, bbb = report["series"]
        # $10 of dividends buy 0.1 shares at the 01-03 open, then the 2:1 split
        assert aaa["shares"] == [10.0, 10.1, 20.2]
        assert bbb["value"][0] is None
        assert bbb["value"][1] == 1000.0

    def test_text_output(self, data_dir: Path, capsys: pytest.CaptureFixture) -> None:
        """Default output is a readable summary."""
        code = main(
            ["returns", "AAA", "--horizon", "max", "--source", "csv", "--data-dir", str(data_dir)]
        )

        assert code == 0
        out = capsys.readouterr().out
        assert "TOTAL RETURN" in out
        assert "AAA" in out
        assert "2020-01-02 to 2020-01-06" in out

    def test_invalid_ticker(self, capsys: pytest.CaptureFixture) -> None:
        """Bad tickers are reported and exit non-zero."""
        code = main(["returns", "AAPL,12345"])

        assert code == 1
        assert "Invalid US ticker" in capsys.readouterr().out

    def test_missing_data(self, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        """Data source errors are reported and exit non-zero."""
        code = main(["returns", "AAA", "--source", "csv", "--data-dir", str(tmp_path)])

        assert code == 1
        assert "CSV file not found" in capsys.readouterr().out

    def test_fetch_span(self, data_dir: Path, capsys: pytest.CaptureFixture) -> None:
        """--start and --end limit the fetched history."""
        code = main(
            [
                "returns",
                "AAA",
                "--horizon",
                "max",
                "--start",
                "2020-01-03",
                "--end",
                "2020-01-03",
                "--source",
                "csv",
                "--data-dir",
                str(data_dir),
                "--json",
            ]
        )

        assert code == 0
        report = json.loads(capsys.readouterr().out)
        assert report["dates"] == ["2020-01-03"]
        assert report["series"][0]["value"] == [1000.0]

    def test_reversed_span(self, capsys: pytest.CaptureFixture) -> None:
        """A start after the end is reported and exits non-zero."""
        code = main(["returns", "AAA", "--start", "2020-02-01", "--end", "2020-01-01"])

        assert code == 1
        assert "after end date" in capsys.readouterr().out


class TestRunCommand:
    """Tests for the run subcommand."""

    def test_run_writes_output(self, data_dir: Path, tmp_path: Path) -> None:
        """Config files drive the computation and output path."""
        output = tmp_path / "out" / "report.json"
        config_path = tmp_path / "returns.yaml"
        config_path.write_text(
            yaml.dump(
                {
                    "symbols": ["AAA"],
                    "base": 500,
                    "horizon": "max",
                    "data_source": "csv",
                    "source_params": {"directory": str(data_dir)},
                    "output_path": str(output),
                }
            )
        )

        code = main(["run", str(config_path)])

        assert code == 0
        report = json.loads(output.read_text())
        assert report["meta"]["base"] == 500.0
        assert report["series"][0]["value"][0] == 500.0

    def test_run_bad_config(self, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        """Configuration errors exit non-zero."""
        code = main(["run", str(tmp_path / "missing.yaml")])

        assert code == 1
        assert "Configuration error" in capsys.readouterr().out

    def test_run_unwritable_output(
        self, data_dir: Path, tmp_path: Path, capsys: pytest.CaptureFixture
    ) -> None:
        """A report that cannot be written is reported and exits non-zero."""
        config_path = tmp_path / "returns.yaml"
        config_path.write_text(
            yaml.dump(
                {
                    "symbols": ["AAA"],
                    "horizon": "max",
                    "data_source": "csv",
                    "source_params": {"directory": str(data_dir)},
                    "output_path": str(data_dir / "AAA.csv" / "report.json"),
                }
            )
        )

        code = main(["run", str(config_path), "--json"])

        assert code == 1
        assert "Error: Failed to write report" in capsys.readouterr().out


class TestListingCommands:
    """Tests for the stats, dividends and prices subcommands."""

    def test_stats_json(self, data_dir: Path, capsys: pytest.CaptureFixture) -> None:
        """Stats are printed as JSON."""
        code = main(
            ["stats", "AAA", "--range", "max", "--source", "csv", "--data-dir", str(data_dir), "--json"]
        )

        assert code == 0
        report = json.loads(capsys.readouterr().out)
        assert report["items"][0]["symbol"] == "AAA"
        assert report["items"][0]["stats"]["current"]["close"] == 55.0

    def test_stats_text(self, data_dir: Path, capsys: pytest.CaptureFixture) -> None:
        """Stats are printed as a table."""
        code = main(["stats", "AAA", "--range", "max", "--source", "csv", "--data-dir", str(data_dir)])

        assert code == 0
        out = capsys.readouterr().out
        assert "STATS: AAA" in out
        assert "return d1" in out

    def test_dividends_text(self, data_dir: Path, capsys: pytest.CaptureFixture) -> None:
        """Dividend history is listed by date."""
        code = main(
            ["dividends", "AAA", "--range", "max", "--source", "csv", "--data-dir", str(data_dir)]
        )

        assert code == 0
        out = capsys.readouterr().out
        assert "AAA dividends (1 total)" in out
        assert "2020-01-03  $1.0000" in out

    def test_prices_json(self, data_dir: Path, capsys: pytest.CaptureFixture) -> None:
        """Candles and splits are printed as JSON."""
        code = main(
            ["prices", "AAA", "--range", "max", "--source", "csv", "--data-dir", str(data_dir), "--json"]
        )

        assert code == 0
        item = json.loads(capsys.readouterr().out)["items"][0]
        assert item["symbol"] == "AAA"
        assert [c["date"] for c in item["candles"]] == ["2020-01-02", "2020-01-03", "2020-01-06"]
        assert item["candles"][1]["high"] == 111.0
        assert item["splits"] == [{"date": "2020-01-06", "ratio": 2.0}]

    def test_prices_text_with_span(
        self, data_dir: Path, capsys: pytest.CaptureFixture
    ) -> None:
        """The table lists only the days inside --start and --end."""
        code = main(
            [
                "prices",
                "AAA",
                "--range",
                "max",
                "--start",
                "2020-01-03",
                "--end",
                "2020-01-03",
                "--source",
                "csv",
                "--data-dir",
                str(data_dir),
            ]
        )

        assert code == 0
        out = capsys.readouterr().out
        assert "AAA prices (1 days)" in out
        assert "2020-01-03" in out
        assert "2020-01-06" not in out

    def test_prices_invalid_date(self, data_dir: Path, capsys: pytest.CaptureFixture) -> None:
        """Unparseable bounds exit non-zero."""
        code = main(
            ["prices", "AAA", "--start", "soon", "--source", "csv", "--data-dir", str(data_dir)]
        )

        assert code == 1
        assert "Invalid start date" in capsys.readouterr().out


def test_no_command_prints_help(capsys: pytest.CaptureFixture) -> None:
    """Running without a subcommand prints usage."""
    assert main([]) == 0
    assert "usage" in capsys.readouterr().out
