"""
Human-readable summaries in Markdown format.

CurationReporter renders CurationMetrics and advisory index summaries as
GitHub-flavored Markdown tables (via tabulate), suitable for logs, CI
output or archiving.
"""
from collections import Counter
from typing import List

from tabulate import tabulate

from advisories.selection import Selection

from .metrics import CurationMetrics


class CurationReporter:
    """Generates Markdown summaries for curation runs and selections."""

    def curation_report(self, metrics: CurationMetrics) -> str:
        """
        Summarize one curation run.

        Args:
            metrics: Metrics from a completed curation run

        Returns:
            Markdown-formatted report as string
        """
        lines: List[str] = []

        lines.append("# Match Curation Report")
        lines.append(f"**Run ID:** {metrics.run_id}")
        lines.append(f"**Started:** {metrics.started_at.isoformat()}")
        if metrics.completed_at:
            duration = (metrics.completed_at - metrics.started_at).total_seconds()
            lines.append(f"**Duration:** {duration:.1f} seconds")
        lines.append("")

        lines.append("## Summary")
        summary_data = [
            ["Matches", metrics.matches_total],
            ["Kept", metrics.matches_kept],
            ["Rejected", metrics.matches_rejected],
        ]
        lines.append(tabulate(summary_data, headers=["Metric", "Value"], tablefmt="github"))
        lines.append("")

        if metrics.rejections_by_reason:
            lines.append("## Rejections by Reason")
            reason_data = [[k, v] for k, v in sorted(metrics.rejections_by_reason.items())]
            lines.append(tabulate(reason_data, headers=["Reason", "Count"], tablefmt="github"))
            lines.append("")

        if metrics.rejections_by_ecosystem:
            lines.append("## Rejections by Ecosystem")
            eco_data = [[k, v] for k, v in sorted(metrics.rejections_by_ecosystem.items())]
            lines.append(tabulate(eco_data, headers=["Ecosystem", "Count"], tablefmt="github"))
            lines.append("")

        return "\n".join(lines)

    def selection_summary(self, selection: Selection) -> str:
        """Package/advisory counts and latest-status distribution."""
        statuses = Counter(
            adv.latest.status for _, adv in selection.advisory_rows() if adv.latest
        )
        advisories = sum(statuses.values())

        lines = ["## Advisory Summary"]
        lines.append(tabulate(
            [["Packages", len(selection)], ["Advisories", advisories]],
            headers=["Metric", "Value"],
            tablefmt="github",
        ))
        if statuses:
            lines.append("")
            lines.append(tabulate(
                sorted(statuses.items()),
                headers=["Latest Status", "Count"],
                tablefmt="github",
            ))
        return "\n".join(lines)
