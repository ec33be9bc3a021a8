# slot_engine/application/analysis/report_generator.py
import json
import logging
import os
import time
from collections import Counter
from typing import Any, Dict, List, Optional, Tuple

import matplotlib
matplotlib.use("Agg")  # files only, never a display
import matplotlib.pyplot as plt

from slot_engine.application.analysis.rtp_analyzer import RTPReport, estimate_line_probability
from slot_engine.domain.machine.entities.machine_config import MachineConfig

# Minimum or typical RTP (%) of reference markets
REFERENCE_STANDARDS: List[Tuple[str, float]] = [
    ("Nevada (minimum)", 75.0),
    ("New Jersey (minimum)", 83.0),
    ("UK (minimum)", 70.0),
    ("Typical land casino", 92.0),
    ("Typical online slot", 96.0),
]

DISTRIBUTION_BUCKETS = 20


def rtp_verdict(rtp: float) -> str:
    """Plain-language placement of an RTP against common market practice."""
    if 94 <= rtp <= 97:
        return "Ideal: within the usual 94-97% range of modern slots"
    if 90 <= rtp < 94:
        return "Slightly low: acceptable but below the modern average"
    if 97 < rtp <= 99:
        return "High: generous to players, thin house margin"
    if rtp < 90:
        return "Too low: players are likely to notice the poor returns"
    return "Too high: the game would lose money over time"


def bucket_distribution(histogram: Dict[int, int],
                        buckets: int = DISTRIBUTION_BUCKETS) -> List[Tuple[str, int]]:
    """
    Collapse a win-multiple histogram into `buckets` labelled rows plus one
    open-ended row for everything at or above `buckets`x.
    """
    rows = [(f"{bucket}x-{bucket + 1}x", histogram.get(bucket, 0)) for bucket in range(buckets)]
    overflow = sum(count for bucket, count in histogram.items() if bucket >= buckets)
    rows.append((f"{buckets}x+", overflow))
    return rows


class ReportGenerator:
    """
    Renders RTP reports as text, JSON files and histogram images.
    """
    def __init__(self, output_dir: Optional[str] = None):
        """
        Initialize the report generator.

        Args:
            output_dir: Directory for files; text rendering works without one
        """
        self.logger = logging.getLogger("application.analysis.report")
        self.output_dir = output_dir

    def _ensure_output_dir(self) -> str:
        if not self.output_dir:
            raise ValueError("No output directory configured")
        os.makedirs(self.output_dir, exist_ok=True)
        return self.output_dir

    def render_symbol_table(self, config: MachineConfig) -> str:
        if config.reel_strips:
            return self._render_strip_table(config)

        catalog = config.catalog
        lines = [
            "SYMBOL PROBABILITIES",
            f"{'Symbol':<12}{'Weight':>8}{'Prob':>9}{'P(3)':>11}{'P(4)':>11}{'P(5)':>11}",
        ]
        for symbol in catalog:
            if symbol.is_scatter:
                estimates = ["-", "-", "-"]
            else:
                estimates = [
                    f"{estimate_line_probability(catalog, symbol.id, count, config.reel_count):.5%}"
                    for count in (3, 4, 5)
                ]
            label = symbol.name or symbol.id
            if symbol.is_wild:
                label += " (W)"
            elif symbol.is_scatter:
                label += " (S)"
            lines.append(
                f"{label:<12}{symbol.weight:>8}{catalog.probability(symbol.id):>9.2%}"
                f"{estimates[0]:>11}{estimates[1]:>11}{estimates[2]:>11}"
            )
        lines.append(f"{'Total':<12}{catalog.total_weight:>8}")
        return "\n".join(lines)

    def _render_strip_table(self, config: MachineConfig) -> str:
        # Strip machines never draw by weight
        stops = Counter(symbol.id for reel in config.reel_strips for symbol in reel.symbols)
        total_stops = sum(stops.values())
        lines = [
            "SYMBOL PROBABILITIES (reel strips, share of all stops)",
            f"{'Symbol':<12}{'Stops':>8}{'Share':>9}",
        ]
        for symbol in config.catalog:
            lines.append(
                f"{symbol.name or symbol.id:<12}{stops[symbol.id]:>8}{stops[symbol.id] / total_stops:>9.2%}"
            )
        lines.append(f"{'Total':<12}{total_stops:>8}")
        return "\n".join(lines)

    def render_text(self, report: RTPReport, config: Optional[MachineConfig] = None) -> str:
        """
        Render a human-readable report.

        Args:
            report: Simulation result
            config: Machine configuration, adds the symbol table when given

        Returns:
            Report text
        """
        sections = [f"=== RTP ANALYSIS: {report.machine_id} ==="]
        if config is not None:
            sections.append(self.render_symbol_table(config))

        spins = report.spins
        sections.append("\n".join([
            "SIMULATION RESULTS",
            f"  Spins:               {spins:,}",
            f"  Bet per spin:        {report.total_bet_per_spin} ({report.bet_per_line} x lines)",
            f"  Total wagered:       {report.total_wagered:,}",
            f"  Total won:           {report.total_won:,}",
            f"  Net result:          {report.net_result:,}",
            f"  RTP:                 {report.rtp:.4f}%",
            f"  House edge:          {report.house_edge:.4f}%",
            f"  Hit frequency:       {report.hit_frequency:.2f}%",
            f"  Win multiple stdev:  {report.win_multiple_std_dev:.4f}",
            f"  Max win multiple:    {report.max_win_multiple:.2f}x",
            f"  Big wins:            {report.big_win_count:,}",
            f"  Mega wins:           {report.mega_win_count:,}",
            f"  Jackpots:            {report.jackpot_count:,}",
            f"  Bonus triggers:      {report.bonus_trigger_count:,}",
            f"  Seed / shards:       {report.seed} / {report.shards} ({report.rng_strategy})",
            f"  Duration:            {report.duration:.2f}s",
        ]))

        distribution = ["WIN DISTRIBUTION (winning spins by multiple of total bet)"]
        for label, count in bucket_distribution(report.histogram):
            share = count / spins if spins else 0.0
            distribution.append(f"  {label:<10}{count:>12,}{share:>10.4%}")
        sections.append("\n".join(distribution))

        comparison = ["COMPARISON"]
        for name, standard in REFERENCE_STANDARDS:
            status = "meets" if report.rtp >= standard else "below"
            comparison.append(f"  {name:<24}{standard:>6.1f}%  {status}")
        comparison.append(f"  Verdict: {rtp_verdict(report.rtp)}")
        if report.target_band:
            low, high = report.target_band
            comparison.append(f"  Target band {low:.2f}-{high:.2f}%: {report.band_assessment}")
        sections.append("\n".join(comparison))

        return "\n\n".join(sections)

    def save_json(self, report: RTPReport) -> str:
        """
        Save the report as JSON.

        Returns:
            Path to the written file
        """
        output_dir = self._ensure_output_dir()
        timestamp = time.strftime("%Y%m%d-%H%M%S")
        filepath = os.path.join(output_dir, f"rtp_report_{report.machine_id}_{timestamp}.json")

        data: Dict[str, Any] = {
            "generated_at": time.strftime("%Y-%m-%d %H:%M:%S"),
            "report": report.to_dict(),
            "verdict": rtp_verdict(report.rtp),
        }
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

        self.logger.info(f"RTP report saved to {filepath}")
        return filepath

    def plot_distribution(self, report: RTPReport) -> str:
        """
        Save a bar chart of the win distribution as PNG.

        Returns:
            Path to the written image
        """
        output_dir = self._ensure_output_dir()
        rows = bucket_distribution(report.histogram)
        labels = [label for label, _ in rows]
        counts = [count for _, count in rows]

        fig, ax = plt.subplots(figsize=(12, 6))
        ax.bar(range(len(counts)), counts, color="steelblue")
        ax.set_xticks(range(len(labels)))
        ax.set_xticklabels(labels, rotation=45, ha="right")
        ax.set_yscale("log")
        ax.set_title(f"Win distribution for {report.machine_id} (RTP {report.rtp:.2f}%)")
        ax.set_xlabel("Win multiple of total bet")
        ax.set_ylabel("Winning spins (log)")
        ax.grid(True, axis="y", linestyle="--", alpha=0.7)
        fig.tight_layout()

        filepath = os.path.join(output_dir, f"win_distribution_{report.machine_id}.png")
        fig.savefig(filepath)
        plt.close(fig)

        self.logger.info(f"Win distribution plot saved to {filepath}")
        return filepath
