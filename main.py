#!/usr/bin/env python3
"""
Main Execution Script for the COVID-19 Time-Series Report

Downloads the JHU CSSE time series, reshapes and joins them, aggregates by
state and country, renders the charts and ranked tables, and fits the
case-density / death-density regression.

Any fetch, schema, date or join error aborts the run.
"""

from pathlib import Path
from typing import Dict, Optional, Union

import pandas as pd
import requests

from analysis.aggregation import Aggregator, select_region
from analysis.data_loading import RawLoader
from analysis.data_processing import DataProcessor
from config import ReportConfig
from models.regression_model import DensityRegressionModel, RegressionResult
from paths import OUTPUT_DIR, FIGURES_DIR, CommonPaths, ensure_directories_exist
from visualization.plotting import plot_cumulative, plot_daily, plot_density_fit, print_table


class CovidReport:
    """Main report class that coordinates all components"""

    def __init__(self, config: Optional[ReportConfig] = None,
                 output_dir: Path = OUTPUT_DIR, figures_dir: Path = FIGURES_DIR,
                 session: Optional[requests.Session] = None):
        """
        Initialize the report

        Args:
            config: Report configuration
            output_dir: Directory for exported tables
            figures_dir: Directory for figures
            session: Optional HTTP session for the loader
        """
        self.config = config or ReportConfig()
        self.paths = CommonPaths(output_dir, figures_dir)
        ensure_directories_exist(self.paths.output_dir, self.paths.figures_dir)

        self.loader = RawLoader(self.config.sources, session=session)
        self.processor = DataProcessor(self.config)
        self.aggregator = Aggregator(top_n=self.config.top_n)
        self.model = DensityRegressionModel()

    def _export_results(self, results: pd.DataFrame, path: Path) -> None:
        """Export results to CSV file"""
        results.to_csv(path, index=False)
        print(f"Results exported to {path}")

    def _preview(self, df: pd.DataFrame, title: str) -> None:
        print_table(df, title, n=self.config.preview_rows)

    def run_processing(self, raw_tables: Dict[str, pd.DataFrame]) -> Dict[str, pd.DataFrame]:
        """Reshape, join and enrich the raw tables."""
        tidy = self.processor.run_all_processing(raw_tables)
        self._preview(tidy['us'], "US (tidy)")
        self._preview(tidy['global'], "Global (tidy, with population)")
        return tidy

    def run_us_analysis(self, us: pd.DataFrame) -> Dict[str, Union[pd.DataFrame, RegressionResult]]:
        """
        Aggregate the US data, chart it, rank states and fit the regression.

        Saves us_by_state.csv, us_totals.csv, us_state_totals.csv and
        regression_summary.txt to the output directory.
        """
        results = self.aggregator.run_us_aggregation(us)
        by_state, totals, state_totals = results['by_state'], results['totals'], results['state_totals']

        self._preview(by_state, "US by state")
        self._preview(totals, "US totals")

        plot_cumulative(totals, "COVID-19 in US", self.paths.us_cumulative)
        plot_daily(totals, "COVID-19 in US (daily)", self.paths.us_daily)

        state = self.config.focus_state
        plot_cumulative(
            select_region(by_state, 'Province_State', state),
            f"COVID-19 in {state}",
            self.paths.state_cumulative(state)
        )

        highest, lowest = self.rank(state_totals)
        print_table(lowest, f"Lowest {self.config.top_n} states by deaths per thousand")
        print_table(highest, f"Highest {self.config.top_n} states by deaths per thousand")

        fit = self.run_regression(state_totals)
        results['state_totals'] = self.model.predict(state_totals)
        plot_density_fit(results['state_totals'], self.paths.density_fit)

        self._export_results(by_state, self.paths.us_by_state)
        self._export_results(totals, self.paths.us_totals)
        self._export_results(results['state_totals'], self.paths.us_state_totals)
        results['regression'] = fit
        return results

    def run_global_analysis(self, global_df: pd.DataFrame) -> Dict[str, pd.DataFrame]:
        """Aggregate the global data by country and rank countries."""
        results = self.aggregator.run_global_aggregation(global_df)
        self._preview(results['by_country'], "Global by country")

        highest, lowest = self.rank(results['country_totals'])
        print_table(highest, f"Highest {self.config.top_n} countries by deaths per thousand")
        print_table(lowest, f"Lowest {self.config.top_n} countries by deaths per thousand")

        self._export_results(results['by_country'], self.paths.global_by_country)
        self._export_results(results['country_totals'], self.paths.global_country_totals)
        return results

    def rank(self, summary: pd.DataFrame):
        """Highest and lowest regions by deaths per thousand."""
        return self.aggregator.ranked_tables(summary)

    def run_regression(self, state_totals: pd.DataFrame) -> RegressionResult:
        """Fit deaths_per_thou ~ cases_per_thou and write the summary."""
        print("Fitting density regression...")
        fit = self.model.fit(state_totals)
        summary = fit.summary()
        print(summary)
        self.paths.regression_summary.write_text(summary + "\n")
        return fit

    def run_all(self) -> Dict[str, Dict[str, Union[pd.DataFrame, RegressionResult]]]:
        """Run the complete report."""
        print("Running COVID-19 report...")
        raw_tables = self.loader.fetch_all()
        tidy = self.run_processing(raw_tables)
        results = {
            'us': self.run_us_analysis(tidy['us']),
            'global': self.run_global_analysis(tidy['global']),
        }
        print("Report completed")
        return results


def main():
    """Main function"""
    CovidReport().run_all()
    print("Analysis completed successfully!")


if __name__ == "__main__":
    main()
