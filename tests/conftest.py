"""Pytest configuration and fixtures."""

import os

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Set test environment
os.environ["APP_ENV"] = "development"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_data/test.db"
os.environ["SESSION_VAULT_MASTER_KEY"] = "test-master-key-not-for-production"
os.environ["SIMULATION_DELAY_SECONDS"] = "0"
os.environ.pop("MANAGED_BROWSER_WS_ENDPOINT", None)
os.environ.pop("MANAGED_BROWSER_FUNCTION_URL", None)
os.environ.pop("EXTERNAL_BROWSER_SERVICE_URL", None)

from autoapply.automation.models import (  # noqa: E402
    ApplicantProfile,
    JobPosting,
    ProjectSuggestion,
    ProjectSuggestionSet,
)
from autoapply.db.session import init_db  # noqa: E402

TEST_MASTER_KEY = os.environ["SESSION_VAULT_MASTER_KEY"]


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Session factory bound to a fresh SQLite database with all tables."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'autoapply.db'}")
    await init_db(engine)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    await engine.dispose()


@pytest.fixture
def profile():
    """Applicant profile with only the required fields."""
    return ApplicantProfile(full_name="Jane Doe", email="j@x.com", phone="555")


@pytest.fixture
def full_profile():
    """Applicant profile with every optional field set."""
    return ApplicantProfile(
        full_name="Jane Doe",
        email="jane@example.com",
        phone="+44 7700 900123",
        linkedin="https://linkedin.com/in/janedoe",
        github="https://github.com/janedoe",
        location="London, UK",
        resume_file_url="https://files.example.com/jane-doe.pdf",
    )


@pytest.fixture
def greenhouse_job():
    return JobPosting(
        job_id="job-123",
        application_url="https://boards.greenhouse.io/acme/jobs/4112015008",
        company_name="Acme",
        role_title="Backend Engineer",
        description="Python, FastAPI, PostgreSQL, asyncio",
    )


@pytest.fixture
def sample_resume():
    """Markdown resume used by the suggestion and rendering tests."""
    return """# Jane Doe

## Summary
Backend engineer with 6 years of Python experience.

## Experience

### Senior Engineer | Widgets Ltd | 2021-Present
- Built async APIs with FastAPI

## Projects

### Old Side Project
A small CLI tool.

## Education
- BSc Computer Science
"""


@pytest.fixture
def project_suggestions():
    return ProjectSuggestionSet(
        projects=[
            ProjectSuggestion(
                project_title="Realtime Job Tracker",
                project_summary="Event-driven tracker for job applications.",
                tech_stack=["Python", "FastAPI", "Redis"],
                github_link="https://github.com/janedoe/job-tracker",
                match_score_delta=8,
            ),
            ProjectSuggestion(
                project_title="Async Scraper",
                project_summary="Concurrent scraper built on httpx.",
                tech_stack=["Python", "httpx"],
                impact_description="Cut crawl time by 70%",
                match_score_delta=15,
            ),
        ],
        match_score_improvement=10,
        reasoning="The role emphasises async Python services.",
    )
