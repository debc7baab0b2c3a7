"""Tests for project selection and resume editing."""

import pytest

from autoapply.automation.backends.gateway import AutomationBackendGateway
from autoapply.automation.backends.simulation import SimulationBackend
from autoapply.automation.collaborators import MarkdownResumeEditor
from autoapply.automation.models import ProjectSuggestion, ProjectSuggestionSet, SuggestionAction
from autoapply.automation.orchestrator import (
    SubmissionContinuation,
    SubmissionOrchestrator,
    SubmissionPhase,
    SubmissionRequest,
)
from autoapply.automation.suggestion_gate import ProjectSuggestionGate
from autoapply.config import Settings


@pytest.fixture
def settings():
    return Settings(_env_file=None, simulation_delay_seconds=0, baseline_match_score=70)


@pytest.fixture
def continuation(profile, greenhouse_job, sample_resume, project_suggestions):
    request = SubmissionRequest(user_id="user-1", job=greenhouse_job, profile=profile, resume_text=sample_resume)
    return SubmissionContinuation(
        application_id="3c2b3f8e-5d0c-4d59-8b1e-2a6f0f4f9a11",
        request=request,
        suggestions=project_suggestions,
        match_score=65,
    )


@pytest.fixture
def gate(settings):
    gateway = AutomationBackendGateway(SimulationBackend(delay_seconds=0), settings)
    return ProjectSuggestionGate(SubmissionOrchestrator(gateway=gateway, settings=settings), settings=settings)


class TestPreview:
    """Tests for computing a selection without resuming."""

    def test_add_uses_suggestion_delta(self, gate, continuation):
        selection = gate.preview(continuation, 0, SuggestionAction.ADD)

        assert selection.match_score == 73
        assert "### Realtime Job Tracker" in selection.resume_text
        assert "### Old Side Project" in selection.resume_text

    def test_replace_swaps_last_project(self, gate, continuation):
        selection = gate.preview(continuation, 1, SuggestionAction.REPLACE)

        assert selection.match_score == 80
        assert "### Async Scraper" in selection.resume_text
        assert "Old Side Project" not in selection.resume_text
        assert "## Education" in selection.resume_text

    def test_skip_keeps_resume_and_score(self, gate, continuation, sample_resume):
        selection = gate.preview(continuation, None, SuggestionAction.SKIP)

        assert selection.resume_text == sample_resume
        assert selection.match_score == 65

    def test_missing_delta_uses_set_improvement(self, gate, continuation):
        suggestions = ProjectSuggestionSet(
            projects=[ProjectSuggestion(project_title="CLI", project_summary="A CLI.")],
            match_score_improvement=12,
        )
        continuation = continuation.model_copy(update={"suggestions": suggestions})

        assert gate.preview(continuation, 0, SuggestionAction.ADD).match_score == 77

    def test_baseline_when_score_unknown(self, gate, continuation):
        continuation = continuation.model_copy(update={"match_score": None})

        assert gate.preview(continuation, 0, SuggestionAction.ADD).match_score == 78

    def test_score_is_capped(self, gate, continuation):
        continuation = continuation.model_copy(update={"match_score": 95})

        assert gate.preview(continuation, 1, SuggestionAction.ADD).match_score == 100

    @pytest.mark.parametrize("index", [None, -1, 2])
    def test_invalid_index(self, gate, continuation, index):
        with pytest.raises(ValueError):
            gate.preview(continuation, index, SuggestionAction.ADD)


class TestSelect:
    """Tests for resuming suspended submissions through the gate."""

    @pytest.mark.asyncio
    async def test_select_resumes_job(self, settings, profile, greenhouse_job, sample_resume, project_suggestions):
        class LowScorer:
            async def score(self, resume_text, job):
                return 60

        class Provider:
            async def suggest(self, resume_text, job, match_score):
                return project_suggestions

        gateway = AutomationBackendGateway(SimulationBackend(delay_seconds=0), settings)
        orchestrator = SubmissionOrchestrator(
            gateway=gateway, scorer=LowScorer(), suggestion_provider=Provider(), settings=settings
        )
        gate = ProjectSuggestionGate(orchestrator, settings=settings)
        suspended = await orchestrator.run(
            SubmissionRequest(user_id="user-1", job=greenhouse_job, profile=profile, resume_text=sample_resume)
        )

        job = await gate.select(suspended.continuation, 0, SuggestionAction.REPLACE)
        outcome = await job.result()

        assert outcome.status == SubmissionPhase.COMPLETED
        assert outcome.match_score == 68
        assert "### Realtime Job Tracker" in job.request.resume_text

    @pytest.mark.asyncio
    async def test_auto_select_picks_highest_delta(self, gate, continuation, monkeypatch):
        captured = {}

        async def fake_resume(continuation, resume_text, match_score, on_progress=None):
            captured.update(resume_text=resume_text, match_score=match_score)
            return "job"

        monkeypatch.setattr(gate.orchestrator, "resume", fake_resume)

        assert await gate.auto_select(continuation) == "job"
        assert captured["match_score"] == 80
        assert "### Async Scraper" in captured["resume_text"]
        assert "### Old Side Project" in captured["resume_text"]

    @pytest.mark.asyncio
    async def test_auto_select_without_projects_skips(self, gate, continuation, monkeypatch, sample_resume):
        captured = {}

        async def fake_resume(continuation, resume_text, match_score, on_progress=None):
            captured.update(resume_text=resume_text, match_score=match_score)
            return "job"

        monkeypatch.setattr(gate.orchestrator, "resume", fake_resume)
        empty = continuation.model_copy(update={"suggestions": ProjectSuggestionSet()})

        await gate.auto_select(empty)

        assert captured == {"resume_text": sample_resume, "match_score": 65}


class TestMarkdownResumeEditor:
    """Tests for Markdown resume editing."""

    @pytest.fixture
    def project(self):
        return ProjectSuggestion(
            project_title="Realtime Job Tracker",
            project_summary="Event-driven tracker.",
            tech_stack=["Python", "Redis"],
            github_link="https://github.com/janedoe/job-tracker",
            live_demo_link="https://tracker.example.com",
            impact_description="Used by 200 people",
            code_snippet="print('hi')",
        )

    def test_format_project(self, project):
        entry = MarkdownResumeEditor.format_project(project)

        assert entry.splitlines()[0] == "### Realtime Job Tracker"
        assert "**Tech Stack:** Python, Redis" in entry
        assert "[GitHub](https://github.com/janedoe/job-tracker) | [Live Demo](https://tracker.example.com)" in entry
        assert "**Key Achievement:** Used by 200 people" in entry
        assert "```\nprint('hi')\n```" in entry

    def test_add_appends_to_projects_section(self, project, sample_resume):
        updated = MarkdownResumeEditor().apply(sample_resume, project, SuggestionAction.ADD)

        projects = updated.index("## Projects")
        assert projects < updated.index("### Old Side Project") < updated.index("### Realtime Job Tracker")
        assert updated.index("### Realtime Job Tracker") < updated.index("## Education")

    def test_add_creates_section_after_experience(self, project):
        resume = "# Jane\n\n## Experience\n- Engineer\n\n## Education\n- BSc\n"

        updated = MarkdownResumeEditor().apply(resume, project, SuggestionAction.ADD)

        assert updated.index("## Experience") < updated.index("## Projects") < updated.index("## Education")

    def test_add_creates_section_at_end(self, project):
        updated = MarkdownResumeEditor().apply("# Jane\n\nSummary.\n", project, SuggestionAction.ADD)

        assert updated.endswith("**Key Achievement:** Used by 200 people\n\n```\nprint('hi')\n```\n")
        assert "## Projects" in updated

    def test_replace_without_entries_adds(self, project):
        resume = "# Jane\n\n## Projects\n\nNone yet.\n"

        updated = MarkdownResumeEditor().apply(resume, project, SuggestionAction.REPLACE)

        assert "None yet." in updated
        assert "### Realtime Job Tracker" in updated

    def test_skip(self, project, sample_resume):
        assert MarkdownResumeEditor().apply(sample_resume, project, SuggestionAction.SKIP) == sample_resume
