import json

import pytest
from typer.testing import CliRunner

from spending_insights.cli import app, cmd_summary

runner = CliRunner()


def _write(tmp_path, payload, name="export.json"):
    path = tmp_path / name
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


@pytest.fixture
def export(tmp_path):
    return _write(
        tmp_path,
        {
            "transactions": [
                {"id": "s1", "amount": 2000, "date": "2024-02-28", "description": "Salary"},
                {"id": "n1", "amount": -9.99, "date": "2024-01-15", "description": "Netflix"},
                {"id": "n2", "amount": -9.99, "date": "2024-02-15", "description": "Netflix"},
                {"id": "t1", "amount": -45, "date": "2024-02-03", "description": "Tesco"},
            ],
            "budgets": [{"id": "b1", "category": "Groceries", "limit": 90}],
            "goals": [{"id": "g1", "name": "Car", "target": 1000, "saved": 100}],
        },
    )


def test_enrich_lists_rows(export):
    result = runner.invoke(app, ["enrich", "--json-path", str(export)])
    assert result.exit_code == 0, result.output
    lines = result.stdout.strip().splitlines()
    assert len(lines) == 4
    assert lines[3].split("\t")[:5] == ["t1", "2024-02-03", "-€45.00", "Tesco", "🛒 Groceries"]


def test_enrich_json(export):
    result = runner.invoke(app, ["enrich", "--json-path", str(export), "--json"])
    assert result.exit_code == 0, result.output
    rows = json.loads(result.stdout)
    assert [r["category"] for r in rows] == ["Income", "Subscriptions", "Subscriptions", "Groceries"]
    assert rows[0]["is_credit"] is True


def test_categories_text(export):
    result = runner.invoke(app, ["categories", "--json-path", str(export)])
    assert result.exit_code == 0, result.output
    lines = result.stdout.strip().splitlines()
    assert lines[0].startswith("🛒 Groceries: €45.00")
    assert "suggested €54.00" in lines[0]
    assert lines[0].endswith("limit €90.00")
    assert lines[1].startswith("📺 Subscriptions: €19.98")


def test_categories_empty_window(export):
    result = runner.invoke(
        app, ["categories", "--json-path", str(export), "--window", "thisMonth", "--as-of", "2025-06-01"]
    )
    assert result.exit_code == 0, result.output
    assert result.stdout.strip() == "No expenses in this window."


def test_recurring_text_and_json(export):
    result = runner.invoke(app, ["recurring", "--json-path", str(export)])
    assert result.exit_code == 0, result.output
    assert result.stdout.strip() == "📺 Netflix: €9.99/month over 2 months, next 2024-03-16"

    result = runner.invoke(app, ["recurring", "--json-path", str(export), "--json"])
    payload = json.loads(result.stdout)
    assert payload[0]["merchant"] == "Netflix"
    assert [t["id"] for t in payload[0]["transactions"]] == ["n1", "n2"]


def test_recurring_none(tmp_path):
    path = _write(tmp_path, [{"id": "a", "amount": -5, "date": "2024-01-01", "description": "Tesco"}])
    result = runner.invoke(app, ["recurring", "--json-path", str(path)])
    assert result.exit_code == 0, result.output
    assert result.stdout.strip() == "No recurring expenses detected."


def test_summary_text(export):
    result = runner.invoke(
        app, ["summary", "--json-path", str(export), "--window", "lastMonth", "--as-of", "2024-03-10"]
    )
    assert result.exit_code == 0, result.output
    assert result.stdout.splitlines() == [
        "Window: lastMonth",
        "Income: €2,000.00",
        "Expenses: €54.99",
        "Net: €1,945.01",
        "Recurring per month: €0.00",
        "Budget usage: 50.0% (0 over budget)",
        "Goals progress: 10.0%",
    ]


def test_summary_json(export):
    result = runner.invoke(app, ["summary", "--json-path", str(export), "--json"])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["window"] == "all"
    assert payload["total_spent"] == pytest.approx(64.98)
    assert payload["recurring_expenses_total"] == pytest.approx(9.99)


def test_handlers_are_callable_directly(export, capsys):
    assert cmd_summary(export, as_json=True) == 0
    assert json.loads(capsys.readouterr().out)["total_income"] == 2000


@pytest.mark.parametrize(
    ("args", "message"),
    [
        (["--window", "fortnight"], "unknown window"),
        (["--as-of", "yesterday"], "invalid --as-of"),
    ],
)
def test_bad_options_exit_with_error(export, args, message):
    result = runner.invoke(app, ["summary", "--json-path", str(export), *args])
    assert result.exit_code == 1
    assert message in result.output


def test_missing_file(tmp_path):
    result = runner.invoke(app, ["summary", "--json-path", str(tmp_path / "nope.json")])
    assert result.exit_code == 1
    assert "File not found" in result.output


def test_malformed_json(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{not json", encoding="utf-8")
    result = runner.invoke(app, ["summary", "--json-path", str(path)])
    assert result.exit_code == 1
    assert "Failed to parse JSON" in result.output


def test_unexpected_shape(tmp_path):
    path = _write(tmp_path, {"items": []})
    result = runner.invoke(app, ["summary", "--json-path", str(path)])
    assert result.exit_code == 1
    assert "Unexpected input shape" in result.output


def test_invalid_budget_document(tmp_path):
    path = _write(tmp_path, {"transactions": [], "budgets": [{"category": "Dining"}]})
    result = runner.invoke(app, ["summary", "--json-path", str(path)])
    assert result.exit_code == 1
    assert "invalid budget, goal or settings data" in result.output


def test_dotenv_settings_are_loaded(export, tmp_path):
    # The autouse fixture runs each test from tmp_path.
    (tmp_path / ".env").write_text("SPENDING_INSIGHTS_DEFAULT_CURRENCY=GBP\n", encoding="utf-8")
    result = runner.invoke(app, ["enrich", "--json-path", str(export)])
    assert result.exit_code == 0, result.output
    assert "-£45.00" in result.stdout


def test_amounts_use_the_transactions_currency(tmp_path):
    path = _write(
        tmp_path,
        {
            "transactions": [
                {"id": "p1", "amount": 1500, "currency": "GBP", "date": "2024-02-28", "description": "Salary"},
                {"id": "p2", "amount": -30, "currency": "GBP", "date": "2024-02-03", "description": "Tesco"},
            ],
            "budgets": [{"id": "b1", "category": "Groceries", "limit": 40}],
        },
    )
    result = runner.invoke(app, ["categories", "--json-path", str(path)])
    assert result.exit_code == 0, result.output
    assert result.stdout.strip() == "🛒 Groceries: £30.00 (100.0%, 1 tx, suggested £36.00) limit £40.00"

    result = runner.invoke(app, ["summary", "--json-path", str(path)])
    assert "Income: £1,500.00" in result.stdout
    assert "Net: £1,470.00" in result.stdout
