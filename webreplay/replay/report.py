import jinja2
from pathlib import Path
from datetime import datetime

from webreplay.core.logging import log
from webreplay.core.models import RecordingSession, ReplayResult


class ReportGenerator:
    """
    Renders a replay result as a standalone HTML report.
    """

    def __init__(self):
        self.env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(Path(__file__).parent / "templates"),
            autoescape=jinja2.select_autoescape(["html", "jinja"]),
        )

    def render(self, session: RecordingSession, result: ReplayResult) -> str:
        template = self.env.get_template("report.html.jinja")
        return template.render(
            session=session,
            result=result,
            meta={"generated_at": datetime.now().strftime("%Y-%m-%d %H:%M:%S")},
        )

    def generate(self, session: RecordingSession, result: ReplayResult, out_path: Path) -> Path:
        """Write the report to ``out_path``."""
        out_path = Path(out_path)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(self.render(session, result), encoding="utf-8")
        log(f"Report generated at {out_path}")
        return out_path
