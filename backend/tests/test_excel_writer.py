"""
Tests for the Excel report export
"""

from openpyxl import load_workbook

from scoring_engine.modules.excel_writer import export_report


def test_report_sheets(tmp_path, props, profile_factory):
    profile = profile_factory(("walk_score", 5), ("pool", 5))
    report = props.rank_batch(
        [("a", {"walk_score": 90, "pool": True}), ("b", {"pool": False}), ("c", {"moat": 1})],
        profile,
    )
    path = export_report(report, str(tmp_path / "out" / "report.xlsx"), profile)

    workbook = load_workbook(path)
    assert workbook.sheetnames == ["Rankings", "Breakdown", "Failures"]

    rankings = workbook["Rankings"]
    assert rankings["A3"].value == "Rank"
    assert [rankings.cell(row=r, column=2).value for r in (4, 5)] == ["a", "b"]
    assert rankings["C4"].value == 95.0
    assert rankings["D4"].value == "A"

    breakdown = workbook["Breakdown"]
    # two results x two factors
    assert breakdown.max_row == 5
    assert breakdown["H4"].value == "YES"

    failures = workbook["Failures"]
    assert failures["A2"].value == "c"
    assert failures["B2"].value == "unknown_factor"
