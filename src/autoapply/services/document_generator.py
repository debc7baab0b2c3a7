"""Resume PDF generation for the generating_pdf step."""

import asyncio
import logging
import re
from datetime import datetime
from pathlib import Path

from fpdf import FPDF
from pydantic import BaseModel, Field

from autoapply.automation.models import ApplicantProfile, JobPosting
from autoapply.config import Settings, get_settings

logger = logging.getLogger(__name__)

SECTION_KEYWORDS = [
    "EXPERIENCE",
    "EDUCATION",
    "SKILLS",
    "SUMMARY",
    "PROFILE",
    "PROJECTS",
]

_MARKDOWN_EMPHASIS = re.compile(r"\*\*(.+?)\*\*")
_MARKDOWN_LINK = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9_-]+")


class DocumentMetadata(BaseModel):
    """Metadata for document generation."""

    job_title: str | None = None
    company: str | None = None
    candidate_name: str | None = None
    date: str = Field(default_factory=lambda: datetime.now().strftime("%B %d, %Y"))


def _plain(line: str) -> str:
    """Strip inline markdown and characters the core PDF fonts cannot encode."""
    line = _MARKDOWN_EMPHASIS.sub(r"\1", line)
    line = _MARKDOWN_LINK.sub(r"\1: \2", line)
    return line.encode("latin-1", "replace").decode("latin-1")


class DocumentGenerator:
    """Generate resume documents in PDF format."""

    @staticmethod
    def generate_cv_pdf(content: str, metadata: DocumentMetadata) -> bytes:
        """Generate a CV document in PDF format."""
        pdf = FPDF()
        pdf.add_page()
        pdf.set_auto_page_break(auto=True, margin=20)

        # Built-in fonts only
        pdf.set_font("Helvetica", size=11)

        if metadata.candidate_name:
            pdf.set_font("Helvetica", "B", 18)
            pdf.cell(0, 15, _plain(metadata.candidate_name), align="C", new_x="LMARGIN", new_y="NEXT")

        if metadata.job_title and metadata.company:
            pdf.set_font("Helvetica", "I", 10)
            pdf.cell(
                0,
                8,
                _plain(f"CV adapted for {metadata.job_title} at {metadata.company}"),
                align="C",
                new_x="LMARGIN",
                new_y="NEXT",
            )

        pdf.ln(5)
        pdf.set_font("Helvetica", size=10)
        in_code_block = False

        for raw_line in content.split("\n"):
            line = raw_line.strip()
            if line.startswith("```"):
                in_code_block = not in_code_block
                pdf.set_font("Courier" if in_code_block else "Helvetica", size=9 if in_code_block else 10)
                continue
            if in_code_block:
                pdf.multi_cell(0, 5, _plain(raw_line.rstrip()) or " ", new_x="LMARGIN", new_y="NEXT")
                continue
            if not line:
                pdf.ln(3)
                continue

            if line.startswith("### "):
                pdf.set_font("Helvetica", "B", 11)
                pdf.multi_cell(0, 7, _plain(line[4:].strip()), new_x="LMARGIN", new_y="NEXT")
                pdf.set_font("Helvetica", size=10)
            elif line.startswith("#") or line.isupper() or line.upper() in SECTION_KEYWORDS:
                pdf.ln(5)
                pdf.set_font("Helvetica", "B", 12)
                pdf.set_fill_color(240, 240, 240)
                pdf.cell(0, 8, _plain(line.lstrip("#").strip()), fill=True, new_x="LMARGIN", new_y="NEXT")
                pdf.set_font("Helvetica", size=10)
            elif line.startswith("- ") or line.startswith("• "):
                pdf.set_x(20)
                pdf.multi_cell(0, 6, _plain(f"  {line}"), new_x="LMARGIN", new_y="NEXT")
            else:
                pdf.multi_cell(0, 6, _plain(line), new_x="LMARGIN", new_y="NEXT")

        return bytes(pdf.output())


class PdfResumeRenderer:
    """Renders the (optimized) resume to a PDF under ``resume_output_dir``.

    Returns the file path, which is handed to the backend as the resume
    reference for ``upload_resume``.
    """

    def __init__(self, output_dir: str | Path | None = None, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self.output_dir = Path(output_dir or settings.resume_output_dir)
        self.generator = DocumentGenerator()

    def output_path(self, profile: ApplicantProfile, job: JobPosting) -> Path:
        stem = _UNSAFE_FILENAME.sub("_", f"{profile.full_name}_{job.job_id}").strip("_") or "resume"
        timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
        return self.output_dir / f"{stem}_{timestamp}.pdf"

    async def render(self, resume_text: str, profile: ApplicantProfile, job: JobPosting) -> str:
        metadata = DocumentMetadata(
            job_title=job.role_title or None,
            company=job.company_name or None,
            candidate_name=profile.full_name or None,
        )
        path = self.output_path(profile, job)
        content = await asyncio.to_thread(self.generator.generate_cv_pdf, resume_text, metadata)
        await asyncio.to_thread(self._write, path, content)
        logger.info(f"Generated resume PDF for job {job.job_id}: {path}")
        return str(path)

    @staticmethod
    def _write(path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
