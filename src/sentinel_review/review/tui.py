"""Terminal UI for reviewing anomaly samples with live refresh."""

import asyncio
from typing import Optional

from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from .controller import ReviewController
from .models import Action, Notification, Sample, Severity, Stats

console = Console()

SEVERITY_STYLES = {
    Severity.SUCCESS: ("green", "✓"),
    Severity.WARNING: ("yellow", "⚠"),
    Severity.ERROR: ("red", "⚠"),
}


def _fmt(value, spec: str = "", suffix: str = "") -> str:
    if value is None:
        return "N/A"
    return f"{value:{spec}}{suffix}"


def _bar(pct: float, width: int = 20) -> str:
    filled = int(max(0.0, min(pct, 100.0)) / 100 * width)
    return "█" * filled + "░" * (width - filled)


class ReviewTUI:
    """
    Terminal UI for the review controller.

    Shows the head sample, the stats sidebar and the current notification.
    Keyboard input runs in a worker thread so the refresh timer and
    notification expiry keep ticking while waiting on the operator.

    Usage:
        tui = ReviewTUI(controller)
        await tui.run()
    """

    def __init__(self, controller: ReviewController):
        self.controller = controller
        self.config = controller.config
        self.reviewed = 0

    async def run(self) -> dict:
        """
        Run the review session until the operator quits.

        Returns session counts.
        """
        controller = self.controller

        with console.status("Initializing dashboard..."):
            await controller.initialize()

        while True:
            # A refresh may replace the head while the prompt is open
            shown = controller.head
            console.print(self.render())

            if controller.correction.is_correcting and shown is not None:
                choice = await self._ask(self._correction_choices())
                if choice == "x":
                    controller.cancel_correction()
                elif await controller.select_correction(Action(int(choice)), expected=shown):
                    self.reviewed += 1
                continue

            choice = await self._ask(self._direct_choices())

            if choice == "q":
                break
            elif choice == "c":
                if await controller.confirm(expected=shown):
                    self.reviewed += 1
            elif choice == "i":
                controller.mark_incorrect(expected=shown)
            elif choice == "r":
                await controller.trigger_retraining()
            elif choice == "u":
                await controller.initialize()

            console.print()

        return {"reviewed": self.reviewed, "pending": controller.pending}

    async def _ask(self, choices: list[str]) -> str:
        return await asyncio.to_thread(Prompt.ask, "Action", choices=choices, console=console)

    def _direct_choices(self) -> list[str]:
        choices = []
        if self.controller.head is not None:
            choices += ["c", "i"]
        if self.controller.retraining_allowed:
            choices.append("r")
        return choices + ["u", "q"]

    def _correction_choices(self) -> list[str]:
        return [str(int(action)) for action in self.controller.correction.choices()] + ["x"]

    # =========================================================================
    # Rendering
    # =========================================================================

    def render(self) -> Group:
        parts = [self.render_stats(self.controller.stats, self.controller.pending)]

        notification = self.controller.notifications.current
        if notification is not None:
            parts.append(self.render_notification(notification))

        head = self.controller.head
        if head is None:
            parts.append(self.render_empty())
        else:
            parts.append(self.render_sample(head))
            parts.append(self.render_actions(head))

        return Group(*parts)

    def render_notification(self, notification: Notification) -> str:
        color, icon = SEVERITY_STYLES[notification.severity]
        return f"[{color}]{icon} {escape(notification.message)}[/{color}]"

    def render_stats(self, stats: Optional[Stats], pending: int) -> Panel:
        """Render the model / learning-loop sidebar."""
        if stats is None:
            return Panel(
                f"[dim]Stats unavailable[/dim]\n  Pending     {pending:>6,}",
                title="[blue]SENTINEL[/blue]",
                border_style="blue",
            )

        retraining = (
            "[yellow]RETRAINING...[/yellow]" if stats.retraining_in_progress else "[dim]IDLE[/dim]"
        )
        content = f"""[bold]Model Accuracy[/bold]  {stats.accuracy}%  [{_bar(stats.accuracy)}]

  Reviewed    {stats.total_reviewed:>6,}
  Pending     {pending:>6,}
  [green]Correct[/green]     {stats.correct_predictions:>6,}
  [red]Incorrect[/red]   {stats.incorrect_predictions:>6,}

[bold]Continuous Learning[/bold]
  Feedback Buffer:  {stats.pending_feedback.count} / {stats.pending_feedback.threshold}
  Status:           {retraining}"""

        return Panel(
            content,
            title="[blue]SENTINEL[/blue] [dim]DDoS Human Review[/dim]",
            border_style="blue",
            padding=(0, 1),
        )

    def render_sample(self, sample: Sample) -> Panel:
        """Render the head sample for inspection."""
        style = self.config.style(sample.predicted_action)
        params = sample.network_parameters

        header = (
            f"Source IP  [bold]{escape(sample.ip)}[/bold]    "
            f"AI Recommendation  [{style.color}]{style.icon} {style.label}[/{style.color}]    "
            f"Suspicion Score  {sample.suspicion_pct:.2f}%"
        )

        metrics = Table.grid(padding=(0, 2))
        metrics.add_column(style="dim")
        metrics.add_column(justify="right")
        metrics.add_column(style="dim")
        metrics.add_column(justify="right")
        metrics.add_row(
            "Packets/sec",
            _fmt(params.packets_per_second, ",.0f"),
            "Bytes/sec",
            _fmt(params.bytes_per_second, ",.0f"),
        )
        metrics.add_row(
            "SYN Ratio", _fmt(params.syn_ratio, ".4f"), "Unique Ports", _fmt(params.unique_ports)
        )
        metrics.add_row(
            "Avg Packet Size",
            _fmt(params.packet_size_avg, ".2f", " B"),
            "Entropy",
            _fmt(params.entropy, ".4f"),
        )
        metrics.add_row(
            "TCP Ratio", _fmt(params.tcp_ratio, ".4f"), "UDP Ratio", _fmt(params.udp_ratio, ".4f")
        )

        parts = [header, "", "[bold]Network Traffic Metrics[/bold]", metrics]

        if params.traffic_spike_ratio:
            parts.append(
                f"[yellow]Traffic Spike: [bold]{params.traffic_spike_ratio}x[/bold] normal levels[/yellow]"
            )

        analysis = sample.parameter_analysis
        if not analysis.is_empty:
            parts += ["", "[bold]Automated Analysis[/bold]"]
            for indicator in analysis.suspicious_indicators:
                parts.append(f"  [red]⚠[/red] {escape(indicator)}")
            for indicator in analysis.normal_indicators:
                parts.append(f"  [green]✓[/green] {escape(indicator)}")
            if analysis.severity_score is not None:
                parts.append(self._render_severity(analysis.severity_score))

        parts += ["", "[bold]Traffic Vector Analysis[/bold]", self._render_vector(sample.current)]

        return Panel(
            Group(*parts),
            title="[yellow]Anomaly Inspection[/yellow]",
            border_style="yellow",
        )

    def _render_severity(self, score: float) -> str:
        if score > 6:
            color = self.config.style(Action.BLOCK).color
        elif score > 3:
            color = self.config.style(Action.RATE_LIMIT).color
        else:
            color = self.config.style(Action.ALLOW).color
        return f"  Threat Severity  [{color}]{_bar(score * 10, width=10)}[/{color}]  {score}/10"

    def _render_vector(self, vector: tuple[float, ...]) -> Table:
        table = Table.grid(padding=(0, 1))
        table.add_column(style="dim")
        table.add_column()
        table.add_column(justify="right")
        highlight = self.config.style(Action.RATE_LIMIT).color
        for idx, value in enumerate(vector):
            color = highlight if value > 5 else "blue"
            bar = _bar(min(value * 10, 100), width=10)
            table.add_row(f"Feat {idx}", f"[{color}]{bar}[/{color}]", f"{value:.1f}")
        return table

    def render_actions(self, sample: Sample) -> str:
        controller = self.controller
        if controller.correction.is_correcting:
            options = []
            for action in controller.correction.choices():
                style = self.config.style(action)
                options.append(
                    f"[bold][{int(action)}][/bold] Set to [{style.color}]{style.label}[/{style.color}]"
                )
            return "Select Correct Action:  " + "  ".join(options) + "  [bold]\\[x][/bold] Cancel"

        label = self.config.style(sample.predicted_action).label
        retrain = (
            "[bold]\\[r][/bold]etrain" if controller.retraining_allowed else "[dim]System Busy[/dim]"
        )
        return (
            f"[bold]\\[c][/bold]onfirm {label}  [bold]\\[i][/bold]ncorrect prediction  "
            f"{retrain}  [bold]\\[u][/bold]pdate  [bold]\\[q][/bold]uit"
        )

    def render_empty(self) -> Panel:
        retrain = (
            "[bold]\\[r][/bold]etrain  " if self.controller.retraining_allowed else "[dim]System Busy[/dim]  "
        )
        content = f"""[bold green]All Clear[/bold green]

No anomalies pending human review.
[dim]Waiting for new data from Firewall...[/dim]

{retrain}[bold]\\[u][/bold]pdate  [bold]\\[q][/bold]uit"""
        return Panel(content, border_style="green")
