import json
import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional

from .config import REPO_ROOT

RESULT_DIR = REPO_ROOT / "results"


class ReportManager:
    def __init__(self, result_dir: Optional[Path] = None):
        self.result_dir = Path(result_dir) if result_dir else RESULT_DIR
        self.reports_dir = self.result_dir / "reports"
        self.logs_dir = self.result_dir / "logs"

    def persist_report(self, report: dict) -> Path:
        self.reports_dir.mkdir(parents=True, exist_ok=True)
        report_id = report.get("run_id", uuid.uuid4().hex)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"report_{timestamp}_{report_id}.json"
        path = self.reports_dir / filename
        path.write_text(json.dumps(report, indent=2, ensure_ascii=False), encoding="utf-8")
        return path

    def persist_log(self, report: dict, rendered: str, report_stem: str) -> Path:
        """Write a human-readable log of the run (one log == one run)."""
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        log_path = self.logs_dir / f"{report_stem}.log"
        lines = []

        lines.append("Circuit Check Report")
        lines.append("====================")
        lines.append(f"Date: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        lines.append(f"Run ID: {report.get('run_id')}")
        lines.append(f"Circuits: {report.get('circuit_dir')}")
        lines.append(f"Instructions: {report.get('instruction_count', 0)}")
        lines.append("")

        lines.append("Summary")
        lines.append("-------")
        lines.append(rendered)
        lines.append("")

        # --- Per-instruction detail ---
        lines.append("Results")
        lines.append("=======")
        results = report.get("results", [])
        if results:
            lines.append(f"{'Instruction':<32} | {'Outcome':<26} | {'Score':<5} | Seconds")
            lines.append("-" * 80)
            for entry in results:
                score = entry.get("score")
                lines.append(
                    f"{entry.get('instruction', ''):<32} | {entry.get('outcome', ''):<26} | "
                    f"{'-' if score is None else score:<5} | {entry.get('elapsed_seconds', 0.0):.2f}"
                )
        else:
            lines.append("No instructions were verified.")

        log_path.write_text("\n".join(lines), encoding="utf-8")
        return log_path
