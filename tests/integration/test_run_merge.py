from __future__ import annotations

from pathlib import Path

from openpyxl import load_workbook
from openpyxl.styles import Font

from flatjson_xlsx.cli import main as cli_main
from flatjson_xlsx.excel.store import read_sheet

"""End-to-end runs through the CLI against real .xlsx files."""


def _values(path: Path, sheet: str) -> list[list[object]]:
    ws = load_workbook(path)[sheet]
    return [list(r) for r in ws.iter_rows(values_only=True)]


def test_update_existing_row_and_append(temp_workdir: Path, make_workbook, stdin_payload):
    out = make_workbook(temp_workdir / "out.xlsx", {"Sheet1": [["id", "name"], ["1", "Alice"]]})
    stdin_payload('[{"id":"1","name":"Bob"},{"id":"2","name":"Carl"}]')

    assert cli_main(["--out", str(out), "--pk", "id", "--pk-first"]) == 0

    assert _values(out, "Sheet1") == [["id", "name"], ["1", "Bob"], ["2", "Carl"]]


def test_repeated_runs_are_idempotent_for_same_input(temp_workdir: Path, stdin_payload):
    payload = '[{"key":"A-1","n":1},{"key":"A-2","n":2}]'
    for _ in range(2):
        stdin_payload(payload)
        assert cli_main(["--out", "o.xlsx", "--pk", "key"]) == 0
    assert _values(temp_workdir / "o.xlsx", "Sheet1") == [["key", "n"], ["A-1", 1], ["A-2", 2]]


def test_linked_pk_column_still_merges_on_rerun(temp_workdir: Path, stdin_payload):
    args = ["--out", "jira.xlsx", "--sheet", "Issues", "--pk", "key", "--link", "key=https://jira/browse/"]
    stdin_payload('[{"key":"ABC-1","status":"Open"}]')
    assert cli_main(args) == 0
    stdin_payload('[{"key":"ABC-1","status":"Done"}]')
    assert cli_main(args) == 0

    ws = load_workbook(temp_workdir / "jira.xlsx")["Issues"]
    assert ws.max_row == 2
    assert ws["A2"].value == '=HYPERLINK("https://jira/browse/ABC-1","ABC-1")'
    assert ws["B2"].value == "Done"
    sheet = read_sheet(temp_workdir / "jira.xlsx", "Issues")
    assert sheet.rows == [{"key": "ABC-1", "status": "Done"}]


def test_ndjson_with_config_file(temp_workdir: Path, write_config: Path, stdin_payload, capsys):
    stdin_payload(
        '{"key":"ABC-2","summary":"two","c.10":"x","c.2":"y"}\n'
        '{"key":"ABC-1","summary":"one","assignee":"me"}\n'
    )
    code = cli_main(["--config", str(write_config), "--ndjson"])
    assert code == 0

    rows = _values(temp_workdir / "report.xlsx", "Issues")
    # pk first, then order list, then natural-sorted remainder
    assert rows[0] == ["key", "summary", "assignee", "c.2", "c.10"]
    assert rows[1][1:] == ["two", None, "y", "x"]
    assert rows[2][1:] == ["one", "me", None, None]
    assert rows[1][0].startswith('=HYPERLINK("https://jira.example.com/browse/ABC-2"')
    assert "SUMMARY rows_in=2" in capsys.readouterr().out


def test_existing_styles_survive_a_merge(temp_workdir: Path, make_workbook, stdin_payload):
    out = make_workbook(temp_workdir / "styled.xlsx", {"Sheet1": [["id", "v"], ["1", "a"]]})
    wb = load_workbook(out)
    wb["Sheet1"]["A1"].font = Font(bold=True, color="FF0000")
    wb.save(out)

    stdin_payload('[{"id":"1","v":"b","w":"new"}]')
    assert cli_main(["--out", str(out), "--pk", "id"]) == 0

    ws = load_workbook(out)["Sheet1"]
    assert ws["A1"].font.bold is True
    assert [c.value for c in ws[1]] == ["id", "v", "w"]
    assert [c.value for c in ws[2]] == ["1", "b", "new"]


def test_include_and_order_rest_none(temp_workdir: Path, stdin_payload):
    stdin_payload('[{"id":1,"a.x":1,"a.y":2,"b":3,"c":4}]')
    code = cli_main([
        "--out", "f.xlsx", "--pk", "id", "--no-pk-first",
        "--include-regex", "^a\\.", "--include", "c",
        "--order", "c", "--order-rest", "none",
    ])
    assert code == 0
    assert _values(temp_workdir / "f.xlsx", "Sheet1") == [["c", "id"], [4, 1]]


def test_dry_run_leaves_file_untouched(temp_workdir: Path, make_workbook, stdin_payload, capsys):
    out = make_workbook(temp_workdir / "keep.xlsx", {"Sheet1": [["id"], ["1"]]})
    before = out.read_bytes()
    stdin_payload('[{"id":"2"}]')
    assert cli_main(["--out", str(out), "--pk", "id", "--dry-run"]) == 0
    assert out.read_bytes() == before
    assert "written=no" in capsys.readouterr().out


def test_missing_pk_rows_appended_not_merged(temp_workdir: Path, make_workbook, stdin_payload):
    out = make_workbook(
        temp_workdir / "ck.xlsx",
        {"Sheet1": [["project", "key", "v"], ["P", "1", "old"]]},
    )
    stdin_payload('[{"project":"P","v":"no key"},{"project":"P","key":"1","v":"new"}]')
    assert cli_main(["--out", str(out), "--pk", "project,key"]) == 0
    assert _values(out, "Sheet1") == [
        ["project", "key", "v"],
        ["P", "1", "new"],
        ["P", None, "no key"],
    ]


def test_existing_formula_cells_survive_merge(temp_workdir: Path, make_workbook, stdin_payload):
    out = make_workbook(temp_workdir / "calc.xlsx", {"Sheet1": [["id", "n", "total"], ["1", 2, "=B2*10"]]})
    stdin_payload('[{"id":"9","n":3}]')

    assert cli_main(["--out", str(out), "--pk", "id"]) == 0

    ws = load_workbook(out)["Sheet1"]
    assert [c.value for c in ws[1]] == ["id", "n", "total"]
    assert ws["C2"].value == "=B2*10"
    assert ws["C2"].data_type == "f"
    assert [ws["A3"].value, ws["B3"].value, ws["C3"].value] == ["9", 3, None]
