"""Tests for the command line interface."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from rankwise.cli import cli
from rankwise.core.exceptions import UpstreamError
from rankwise.models.domain.answer import Answer

QUESTION = "How do I reset my password?"
GOOD = "Open account settings, choose reset password and follow the emailed link."
REFUSAL = "I don't know and I cannot help with that."


class TestRankCommand:
    """Tests for `rankwise rank`."""

    def test_prints_ranked_candidates(self) -> None:
        result = CliRunner().invoke(cli, ["rank", QUESTION, REFUSAL, GOOD])

        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0].startswith("#1")
        assert "[1] Open account settings" in result.output

    def test_json_output(self) -> None:
        result = CliRunner().invoke(cli, ["rank", QUESTION, REFUSAL, GOOD, "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [item["rank"] for item in data] == [1, 2]
        assert data[0]["position"] == 1
        assert data[1]["hallucination_penalty"] == 10

    def test_reads_candidates_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "candidates.json"
        path.write_text(json.dumps([GOOD, GOOD, GOOD]), encoding="utf-8")

        result = CliRunner().invoke(cli, ["rank", QUESTION, "--file", str(path), "--json"])

        assert result.exit_code == 0
        scores = [item["final_score"] for item in json.loads(result.output)]
        assert scores[0] - scores[1] == 5
        assert scores[1] - scores[2] == 5

    def test_custom_min_gap(self) -> None:
        result = CliRunner().invoke(
            cli, ["rank", QUESTION, GOOD, GOOD, "--min-gap", "12", "--json"]
        )

        scores = [item["final_score"] for item in json.loads(result.output)]
        assert scores[0] - scores[1] == 12

    def test_rejects_malformed_file(self, tmp_path: Path) -> None:
        path = tmp_path / "candidates.json"
        path.write_text(json.dumps({"answer": GOOD}), encoding="utf-8")

        result = CliRunner().invoke(cli, ["rank", QUESTION, "--file", str(path)])

        assert result.exit_code != 0
        assert "JSON list of strings" in result.output

    def test_rejects_invalid_json_file(self, tmp_path: Path) -> None:
        path = tmp_path / "candidates.json"
        path.write_text("not json", encoding="utf-8")

        result = CliRunner().invoke(cli, ["rank", QUESTION, "--file", str(path)])

        assert result.exit_code == 2
        assert "is not valid JSON" in result.output

    def test_requires_a_candidate(self) -> None:
        result = CliRunner().invoke(cli, ["rank", QUESTION])

        assert result.exit_code != 0
        assert "at least one candidate" in result.output


class TestAskCommand:
    """Tests for `rankwise ask`."""

    def test_prints_generated_answers(self) -> None:
        service = MagicMock()
        service.generate_answers = AsyncMock(
            return_value=[
                Answer(id="a1", rank=1, content="Best answer", confidence=88),
                Answer(id="a2", rank=2, content="Second answer", confidence=70),
            ]
        )
        service.client.close = AsyncMock()

        with patch("rankwise.services.answer_service.AnswerService", return_value=service):
            result = CliRunner().invoke(cli, ["ask", QUESTION])

        assert result.exit_code == 0
        assert "#1 (confidence 88)" in result.output
        assert "Second answer" in result.output
        service.client.close.assert_awaited_once()

    def test_reports_service_errors(self) -> None:
        service = MagicMock()
        service.generate_answers = AsyncMock(side_effect=UpstreamError("Provider down"))
        service.client.close = AsyncMock()

        with patch("rankwise.services.answer_service.AnswerService", return_value=service):
            result = CliRunner().invoke(cli, ["ask", QUESTION])

        assert result.exit_code == 1
        assert "Provider down" in result.output

    def test_missing_api_key_is_reported(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.chdir(tmp_path)

        result = CliRunner().invoke(cli, ["ask", QUESTION])

        assert result.exit_code == 1
        assert "OpenAI API key is required" in result.output


class TestWithoutApiKey:
    """Offline ranking needs no OpenAI key."""

    def test_rank_runs_without_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        result = CliRunner().invoke(cli, ["rank", QUESTION, GOOD])

        assert result.exit_code == 0
