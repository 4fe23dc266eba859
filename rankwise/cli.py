"""Command line interface for ranking and generating answers."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

import click

from rankwise.core.exceptions import AppError
from rankwise.core.logging import quiet_noisy_loggers
from rankwise.scoring.ranking import AnswerRanker, RankingResult


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        stream=sys.stderr,
    )
    quiet_noisy_loggers()


def _result_to_dict(result: RankingResult) -> dict[str, object]:
    return {
        "rank": result.rank,
        "position": result.position,
        "final_score": result.final_score,
        "confidence": result.confidence,
        "relevance": result.relevance,
        "hallucination_penalty": result.hallucination_penalty,
        "keyword_overlap": result.factors.keyword_overlap,
        "completeness": result.factors.completeness,
        "structural_quality": result.factors.structural_quality,
        "clarity_penalty": result.factors.clarity_penalty,
        "text": result.text,
    }


def _echo_results(results: list[RankingResult]) -> None:
    for result in results:
        f = result.factors
        preview = " ".join(result.text.split())[:70]
        click.echo(
            f"#{result.rank}  final={result.final_score:3d}  conf={result.confidence:3d}  "
            f"rel={result.relevance:3d}  halluc=-{result.hallucination_penalty}"
        )
        click.echo(
            f"    overlap={f.keyword_overlap} complete={f.completeness} "
            f"structure={f.structural_quality} clarity=-{f.clarity_penalty}"
        )
        click.echo(f"    [{result.position}] {preview}")


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log scoring details to stderr")
def cli(verbose: bool) -> None:
    """Score and rank candidate answers to a question."""
    _setup_logging(verbose)


@cli.command()
@click.argument("question")
@click.argument("candidates", nargs=-1)
@click.option(
    "--file",
    "candidates_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="JSON file holding a list of candidate answers",
)
@click.option("--min-gap", default=5, show_default=True, help="Minimum gap between ranks")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
def rank(
    question: str,
    candidates: tuple[str, ...],
    candidates_file: Path | None,
    min_gap: int,
    as_json: bool,
) -> None:
    """Rank CANDIDATES as answers to QUESTION."""
    texts = list(candidates)
    if candidates_file is not None:
        try:
            loaded = json.loads(candidates_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"is not valid JSON ({e})", param_hint="--file") from e
        if not isinstance(loaded, list) or not all(isinstance(t, str) for t in loaded):
            raise click.BadParameter("must contain a JSON list of strings", param_hint="--file")
        texts.extend(loaded)

    if not texts:
        raise click.UsageError("Provide at least one candidate answer.")

    results = AnswerRanker(min_gap=min_gap).rank(question, texts)

    if as_json:
        click.echo(json.dumps([_result_to_dict(r) for r in results], indent=2))
    else:
        _echo_results(results)


@cli.command()
@click.argument("question")
def ask(question: str) -> None:
    """Generate three answers to QUESTION and print them ranked."""
    from rankwise.services.answer_service import AnswerService

    async def _run() -> None:
        service = AnswerService()
        try:
            answers = await service.generate_answers(question)
        finally:
            await service.client.close()

        for answer in answers:
            click.echo(f"\n#{answer.rank} (confidence {answer.confidence})")
            click.echo(answer.content)

    try:
        asyncio.run(_run())
    except AppError as e:
        raise click.ClickException(e.detail) from e


@cli.command()
def serve() -> None:
    """Run the HTTP API with uvicorn."""
    from rankwise.main import run

    run()


if __name__ == "__main__":
    cli()
