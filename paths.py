#!/usr/bin/env python3
"""Centralized Path Management for the COVID-19 Report.

This module provides a single source of truth for all file paths written by
the report. Input tables are downloaded, never stored, so only output
locations are managed here.

Directory Structure:
    project_root/
    ├── analysis/       # Loading, reshaping, joining and aggregation
    ├── models/         # Regression model
    ├── visualization/  # Charts and ranked tables
    ├── output/         # Exported result tables (CSV)
    └── figures/        # Generated charts (PDF)

Usage:
    >>> from paths import OUTPUT_DIR, paths
    >>> df.to_csv(paths.us_state_totals, index=False)
"""

from pathlib import Path

# ============================================================================
# Root Directory
# ============================================================================

PROJECT_ROOT = Path(__file__).parent

# ============================================================================
# Output Directories
# ============================================================================

OUTPUT_DIR = PROJECT_ROOT / "output"
"""Exported result tables."""

FIGURES_DIR = PROJECT_ROOT / "figures"
"""Generated plots."""


def ensure_directories_exist(output_dir: Path = OUTPUT_DIR,
                             figures_dir: Path = FIGURES_DIR) -> None:
    """Create the output and figures directories if they don't exist.

    Safe to call multiple times.
    """
    Path(output_dir).mkdir(parents=True, exist_ok=True)
    Path(figures_dir).mkdir(parents=True, exist_ok=True)


# ============================================================================
# Common File Paths
# ============================================================================

class CommonPaths:
    """Commonly used artefact paths, relative to configurable directories."""

    def __init__(self, output_dir: Path = OUTPUT_DIR, figures_dir: Path = FIGURES_DIR):
        self.output_dir = Path(output_dir)
        self.figures_dir = Path(figures_dir)

    # === Result tables ===
    @property
    def us_by_state(self) -> Path:
        """US cases and deaths by state and date."""
        return self.output_dir / "us_by_state.csv"

    @property
    def us_totals(self) -> Path:
        """US cases and deaths by date, with daily deltas."""
        return self.output_dir / "us_totals.csv"

    @property
    def us_state_totals(self) -> Path:
        """Max-to-date per state with densities and predictions."""
        return self.output_dir / "us_state_totals.csv"

    @property
    def global_by_country(self) -> Path:
        """Global cases and deaths by country and date."""
        return self.output_dir / "global_by_country.csv"

    @property
    def global_country_totals(self) -> Path:
        """Max-to-date per country with densities."""
        return self.output_dir / "global_country_totals.csv"

    @property
    def regression_summary(self) -> Path:
        """Text summary of the density regression."""
        return self.output_dir / "regression_summary.txt"

    # === Figures ===
    @property
    def us_cumulative(self) -> Path:
        return self.figures_dir / "us_cumulative.pdf"

    @property
    def us_daily(self) -> Path:
        return self.figures_dir / "us_daily.pdf"

    def state_cumulative(self, state: str) -> Path:
        """Cumulative chart for one state."""
        slug = state.lower().replace(' ', '_')
        return self.figures_dir / f"{slug}_cumulative.pdf"

    @property
    def density_fit(self) -> Path:
        return self.figures_dir / "density_fit.pdf"


# Default instance for easy imports
paths = CommonPaths()


if __name__ == "__main__":
    """Print all configured paths for debugging if run as script."""
    print("=" * 80)
    print("Configured Paths for COVID-19 Report")
    print("=" * 80)
    print(f"\nProject Root: {PROJECT_ROOT}")
    print(f"  Results: {OUTPUT_DIR}")
    print(f"  Figures: {FIGURES_DIR}")
