"""Interfaces of the services the orchestrator depends on.

Scoring, project suggestion and resume rendering live outside this
package; the orchestrator only sees these protocols. ``MarkdownResumeEditor``
is the default resume editor.
"""

import re
from typing import Protocol, runtime_checkable

from autoapply.automation.models import (
    ApplicantProfile,
    JobPosting,
    ProjectSuggestion,
    ProjectSuggestionSet,
    SuggestionAction,
)


@runtime_checkable
class MatchScorer(Protocol):
    async def score(self, resume_text: str, job: JobPosting) -> float:
        """Match score between 0 and 100."""
        ...


@runtime_checkable
class ProjectSuggestionProvider(Protocol):
    async def suggest(self, resume_text: str, job: JobPosting, match_score: float) -> ProjectSuggestionSet:
        ...


@runtime_checkable
class ResumeEditor(Protocol):
    def apply(self, resume_text: str, suggestion: ProjectSuggestion, action: SuggestionAction) -> str:
        ...


@runtime_checkable
class ResumeOptimizer(Protocol):
    async def optimize(self, resume_text: str, job: JobPosting) -> str:
        ...


@runtime_checkable
class ResumeRenderer(Protocol):
    async def render(self, resume_text: str, profile: ApplicantProfile, job: JobPosting) -> str:
        """Render the resume and return a reference (path or URL) to the file."""
        ...


_SECTION_HEADING = re.compile(r"^##\s+(?P<title>.+?)\s*$", re.MULTILINE)
_PROJECTS_TITLE = re.compile(r"^projects?$", re.IGNORECASE)
_EXPERIENCE_TITLE = re.compile(r"^experience$", re.IGNORECASE)
_ENTRY_HEADING = re.compile(r"^###\s+", re.MULTILINE)


class MarkdownResumeEditor:
    """Inserts suggested projects into a Markdown resume.

    Sections are ``## `` headings; project entries inside ``## Projects``
    are ``### `` headings. ``replace`` swaps the last project entry,
    ``add`` appends a new one (creating the section after Experience, or at
    the end, when the resume has none).
    """

    def apply(self, resume_text: str, suggestion: ProjectSuggestion, action: SuggestionAction) -> str:
        if action == SuggestionAction.SKIP:
            return resume_text

        entry = self.format_project(suggestion)
        if action == SuggestionAction.REPLACE:
            return self._replace_last_project(resume_text, entry)
        return self._add_project(resume_text, entry)

    @staticmethod
    def format_project(project: ProjectSuggestion) -> str:
        lines = [f"### {project.project_title}"]
        if project.tech_stack:
            lines.append(f"**Tech Stack:** {', '.join(project.tech_stack)}")
        links = []
        if project.github_link:
            links.append(f"[GitHub]({project.github_link})")
        if project.live_demo_link:
            links.append(f"[Live Demo]({project.live_demo_link})")
        if links:
            lines.append(f"**Links:** {' | '.join(links)}")
        lines += ["", project.project_summary.strip()]
        if project.impact_description:
            lines += ["", f"**Key Achievement:** {project.impact_description}"]
        if project.code_snippet:
            lines += ["", "```", project.code_snippet.rstrip(), "```"]
        return "\n".join(lines)

    def _sections(self, resume_text: str) -> list[tuple[str, int, int]]:
        """(title, start, end) for each ``## `` section."""
        headings = list(_SECTION_HEADING.finditer(resume_text))
        sections = []
        for i, match in enumerate(headings):
            end = headings[i + 1].start() if i + 1 < len(headings) else len(resume_text)
            sections.append((match.group("title"), match.start(), end))
        return sections

    def _find(self, resume_text: str, pattern: re.Pattern) -> tuple[int, int] | None:
        for title, start, end in self._sections(resume_text):
            if pattern.match(title):
                return start, end
        return None

    def _add_project(self, resume_text: str, entry: str) -> str:
        projects = self._find(resume_text, _PROJECTS_TITLE)
        if projects:
            start, end = projects
            section = resume_text[start:end].rstrip()
            return f"{resume_text[:start]}{section}\n\n{entry}\n\n{resume_text[end:].lstrip()}".rstrip() + "\n"

        new_section = f"## Projects\n\n{entry}"
        experience = self._find(resume_text, _EXPERIENCE_TITLE)
        if experience:
            _, end = experience
            before = resume_text[:end].rstrip()
            after = resume_text[end:].lstrip()
            return f"{before}\n\n{new_section}\n\n{after}".rstrip() + "\n"
        return f"{resume_text.rstrip()}\n\n{new_section}\n"

    def _replace_last_project(self, resume_text: str, entry: str) -> str:
        projects = self._find(resume_text, _PROJECTS_TITLE)
        if not projects:
            return self._add_project(resume_text, entry)

        start, end = projects
        section = resume_text[start:end]
        entries = list(_ENTRY_HEADING.finditer(section))
        if not entries:
            return self._add_project(resume_text, entry)

        last = entries[-1].start()
        updated = f"{section[:last]}{entry}\n\n"
        return f"{resume_text[:start]}{updated}{resume_text[end:].lstrip()}".rstrip() + "\n"
