# ABOUTME: Provides a CLI over the tier engine and predictive analytics for exported SMILE data.
# ABOUTME: Reads question/group tables from a data directory and prints tables or JSON.

import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from src.common.config import DEFAULT_CONFIG_PATH, ConfigError, SmileSettings, load_settings
from src.predictive import FrameObservationSource, PredictiveAnalyticsService, build_insight_provider
from src.tiers import TierConfigError, classify_points, level_progress

console = Console()
app = typer.Typer(help="SMILE tier progression and predictive learning analytics.")

RISK_COLORS = {"low": "yellow", "medium": "orange3", "high": "red"}
HEALTH_COLORS = {"excellent": "green", "good": "cyan", "needs_attention": "yellow", "critical": "red"}


def _default_data_dir() -> Path:
    return Path("data/smile")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log engine decisions at DEBUG level."),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _settings(config: Path) -> SmileSettings:
    try:
        return load_settings(config)
    except (ConfigError, TierConfigError) as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc


def _service(data_dir: Path, settings: SmileSettings) -> PredictiveAnalyticsService:
    try:
        source = FrameObservationSource.from_directory(data_dir)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    return PredictiveAnalyticsService(source, insight_provider=build_insight_provider(settings.llm))


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


@app.command()
def tier(
    points: int = typer.Option(..., "--points", help="Cumulative badge points."),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Settings YAML with the tier table."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
) -> None:
    """
    Show the tier, tier progress, and level for a point total.
    """
    settings = _settings(config)
    info = classify_points(points, settings.tiers)
    level = level_progress(points)

    if as_json:
        _echo_json({"level_info": info.to_dict(), "level": level.to_dict()})
        return

    current = info.current_tier
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Tier")
    table.add_column("Progress")
    table.add_column("Points to next")
    table.add_column("Level")
    table.add_row(
        f"{current.icon} {current.name}",
        f"{info.progress_percentage:.1f}%",
        "max tier" if info.is_max_tier else f"{info.points_to_next:,}",
        f"{level.level} ({level.level_progress:.0%})",
    )
    console.print(table)


@app.command()
def performance(
    student_id: str = typer.Option(..., "--student-id", help="Student whose quality trend to predict."),
    data_dir: Path = typer.Option(_default_data_dir(), "--data-dir", help="Directory with exported tables."),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Settings YAML."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
) -> None:
    """
    Predict a student's next question-quality score.
    """
    prediction = _service(data_dir, _settings(config)).student_performance(student_id)
    if prediction is None:
        console.print(f"[yellow]Not enough recent data for {student_id}[/yellow]")
        raise typer.Exit(code=1)

    if as_json:
        _echo_json(prediction.to_dict())
        return

    console.print(f"[bold]Student:[/] {student_id}")
    console.print(f"[bold]Trend:[/] {prediction.current_trend}")
    console.print(f"[bold]Predicted quality:[/] {prediction.predicted_quality:.1f}/5 (confidence {prediction.confidence:.0%})")
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Date")
    table.add_column("Avg quality")
    for point in prediction.historical_data:
        table.add_row(point.date, f"{point.quality:.1f}")
    console.print(table)
    console.print(f"  → {prediction.recommendation}")


@app.command()
def engagement(
    activity_id: str = typer.Option(..., "--activity-id", help="Activity to project."),
    data_dir: Path = typer.Option(_default_data_dir(), "--data-dir", help="Directory with exported tables."),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Settings YAML."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
) -> None:
    """
    Project the next four weeks of submissions for an activity.
    """
    prediction = _service(data_dir, _settings(config)).activity_engagement(activity_id)
    if prediction is None:
        console.print(f"[red]Unknown activity {activity_id}[/red]")
        raise typer.Exit(code=1)

    if as_json:
        _echo_json(prediction.to_dict())
        return

    console.print(f"[bold]Activity:[/] {activity_id} ({prediction.predicted_engagement} engagement)")
    console.print(f"[bold]Best posting times:[/] {', '.join(prediction.optimal_posting_times) or 'n/a'}")
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Week of")
    table.add_column("Expected questions")
    for week in prediction.weekly_projection:
        table.add_row(week.week, str(week.expected_questions))
    console.print(table)
    for factor in prediction.factors_affecting:
        console.print(f"  • {factor}")


@app.command("at-risk")
def at_risk(
    group_id: Optional[str] = typer.Option(None, "--group-id", help="Restrict to one group."),
    data_dir: Path = typer.Option(_default_data_dir(), "--data-dir", help="Directory with exported tables."),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Settings YAML."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
) -> None:
    """
    List students whose activity, quality, or recency puts them at risk.
    """
    students = _service(data_dir, _settings(config)).at_risk_students(group_id)

    if as_json:
        _echo_json([s.to_dict() for s in students])
        return

    if not students:
        console.print("[green]✅ No at-risk students[/green]")
        return
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Student")
    table.add_column("Score")
    table.add_column("Level")
    table.add_column("Factors")
    table.add_column("Intervention")
    for student in students:
        color = RISK_COLORS.get(student.risk_level, "white")
        table.add_row(
            student.student_name,
            str(student.risk_score),
            f"[{color}]{student.risk_level}[/{color}]",
            "; ".join(student.risk_factors),
            student.suggested_intervention,
        )
    console.print(table)


@app.command()
def timing(
    user_id: str = typer.Option(..., "--user-id", help="Member whose groups to analyze."),
    data_dir: Path = typer.Option(_default_data_dir(), "--data-dir", help="Directory with exported tables."),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Settings YAML."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
) -> None:
    """
    Rank weekday/hour slots by submission volume.
    """
    slots = _service(data_dir, _settings(config)).optimal_timing(user_id)

    if as_json:
        _echo_json([s.to_dict() for s in slots])
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Day")
    table.add_column("Hour (UTC)")
    table.add_column("Questions")
    table.add_column("Engagement")
    for slot in slots:
        table.add_row(slot.day_of_week, f"{slot.hour:02d}:00", str(slot.question_count), f"{slot.engagement_score:.2f}")
    console.print(table)


@app.command()
def insights(
    user_id: str = typer.Option(..., "--user-id", help="Group owner to summarize."),
    data_dir: Path = typer.Option(_default_data_dir(), "--data-dir", help="Directory with exported tables."),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Settings YAML."),
    use_llm: Optional[bool] = typer.Option(None, "--llm/--no-llm", help="Override whether an LLM phrases the insights."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of text."),
) -> None:
    """
    Summarize the health of every group a teacher owns.
    """
    settings = _settings(config)
    if use_llm is not None:
        settings = replace(settings, llm=replace(settings.llm, enabled=use_llm))

    summary = _service(data_dir, settings).insights_summary(user_id)
    if summary is None:
        console.print(f"[yellow]{user_id} owns no groups[/yellow]")
        raise typer.Exit(code=1)

    if as_json:
        _echo_json(summary.to_dict())
        return

    color = HEALTH_COLORS.get(summary.overall_health, "white")
    console.rule(f"[bold {color}]Overall health: {summary.overall_health}[/bold {color}]")
    for name, value in summary.metrics.items():
        console.print(f"[bold]{name}:[/] {value}")
    console.print()
    console.print("[bold green]Insights[/bold green]")
    for line in summary.key_insights:
        console.print(f"  • {line}")
    console.print("[bold yellow]Recommendations[/bold yellow]")
    for line in summary.recommendations:
        console.print(f"  → {line}")


if __name__ == "__main__":
    app()
