import sys
from pathlib import Path

from mls_cap import main as report_main


FIXTURE = str(Path(__file__).parent / "fixtures" / "sample_roster.csv")


def test_run_report_writes_outputs(tmp_path, capsys):
    result = report_main.run_report(roster_path=FIXTURE, year=2026, output_dir=str(tmp_path))

    assert result["report"].is_compliant is True
    assert result["summary"]["tam"]["used"] == 96_875
    assert result["summary"]["gam"]["used"] == 1_196_875
    assert Path(result["charges_csv"]).exists()
    assert Path(result["report_md"]).read_text(encoding="utf-8").startswith("# Austin FC Cap Compliance Report")

    out = capsys.readouterr().out
    assert "[cap] [1/4] loading roster" in out
    assert "[cap] [4/4] checking compliance" in out


def test_run_report_model_b(tmp_path):
    result = report_main.run_report(roster_path=FIXTURE, year=2026, model="B")
    assert result["report"].dp.max == 2
    assert result["report"].u22.max == 4
    assert "charges_csv" not in result


def test_main_returns_error_code_on_bad_roster(monkeypatch, tmp_path, capsys):
    monkeypatch.setattr(sys, "argv", ["mls-cap-report", "--roster", str(tmp_path / "missing.csv")])
    assert report_main.main() == 1
    assert "[cap] ERROR:" in capsys.readouterr().out


def test_main_success(monkeypatch):
    monkeypatch.setattr(sys, "argv", ["mls-cap-report", "--roster", FIXTURE, "--year", "2025"])
    assert report_main.main() == 0
