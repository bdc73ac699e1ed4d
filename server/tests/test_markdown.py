import pytest

from models import User
from readme.badges import build_badges
from readme.markdown import (
    build_markdown,
    build_typing_lines,
    collect_top_languages,
    collect_topics,
)
from schemas import (
    ContactPreferences,
    ContentGenerationRequest,
    ProfileConfigData,
    ProjectSummary,
    Repository,
    RepositoryAnalysis,
)


def _repo(name, **extra):
    return Repository(
        name=name,
        full_name=f"octocat/{name}",
        html_url=f"https://github.com/octocat/{name}",
        **extra,
    )


@pytest.fixture
def user():
    return User(
        username="octocat",
        email="account@example.com",
        avatar_url="https://avatars.example.com/o.png",
        bio="Builds things",
        location="Toronto",
        company="@github",
        blog="https://blog.example.com",
    )


@pytest.fixture
def request_data():
    return ContentGenerationRequest(
        target_role="Backend Engineer",
        emphasized_skills=["Go", "Kubernetes", "Redis"],
        tone_of_voice="professional",
        contact_prefs=ContactPreferences(linkedin="https://linkedin.com/in/octo"),
        projects=[
            RepositoryAnalysis(
                repository=_repo("alpha", description="Alpha tool", stargazers_count=5, topics=["cli", "devtools"]),
                languages={"Go": 3000, "Shell": 100},
                commit_count=120,
                contributor_count=3,
            ),
            RepositoryAnalysis(
                repository=_repo("beta", topics=["cli", "web"]),
                languages={"TypeScript": 3000, "CSS": 50},
            ),
        ],
        user_api_key="key",
    )


def _config(request):
    return ProfileConfigData(
        target_role=request.target_role,
        skills_emphasis=request.emphasized_skills,
        contact_prefs=request.contact_prefs,
    )


def _summaries(request):
    return [
        ProjectSummary(repository=p.repository, summary=f"About {p.repository.name}.", tech_stack=["Go", "gRPC"])
        for p in request.projects
    ]


def _render(user, request):
    badges = build_badges(request.projects, ["Docker"], request.emphasized_skills)
    return build_markdown(user, request, "I build backends.", _summaries(request), badges, _config(request))


def test_top_languages_ties_broken_by_name(request_data):
    assert collect_top_languages(request_data.projects, 5) == ["Go", "TypeScript", "Shell", "CSS"]


def test_topics_deduplicated_in_first_seen_order(request_data):
    assert collect_topics(request_data.projects) == ["cli", "devtools", "web"]


def test_typing_lines():
    config = ProfileConfigData(target_role="Data Engineer", skills_emphasis=["Apache Kafka"])
    lines = build_typing_lines(config, ["Python", "Go"], ["etl", "streaming", "ml"])
    assert lines == [
        "Data+Engineer",
        "Python & Go Developer",
        "Expert+in+Apache+Kafka",
        "etl",
        "streaming",
    ]


def test_typing_lines_single_language_and_fallback():
    assert build_typing_lines(ProfileConfigData(), ["Rust"], []) == ["Rust+Developer"]
    assert build_typing_lines(ProfileConfigData(), [], []) == ["Software+Developer"]


def test_sections_in_order(user, request_data):
    markdown = _render(user, request_data)
    headings = [
        "# Hi, I'm @octocat",
        "About Me\n",
        "Connect\n",
        "Tech Stack\n",
        "GitHub Stats\n",
        "Featured Projects\n",
        "Contribution Activity\n",
        "*Generated with [GitRight](https://github.com/octocat)",
    ]
    positions = [markdown.index(h) for h in headings]
    assert positions == sorted(positions)


def test_hero_and_about(user, request_data):
    markdown = _render(user, request_data)

    assert "**Builds things**" in markdown
    assert "📍 Toronto &nbsp;·&nbsp; 🏢 [@github](https://github.com/github)" in markdown
    assert "lines=Backend+Engineer;Go & TypeScript Developer;Expert+in+Go;cli;devtools)" in markdown
    assert "- 🎯 Growing as a **Backend Engineer**" in markdown
    assert (
        "- 🔭 Currently building **[alpha](https://github.com/octocat/alpha) & "
        "[beta](https://github.com/octocat/beta)**"
    ) in markdown
    assert "- 🌱 Deepening expertise in **Go & Kubernetes**" in markdown
    assert "- 💬 Ask me about **Go, TypeScript, Shell**" in markdown
    # No contact email configured, so the account email is used
    assert "- 📫 Reach me at **account@example.com**" in markdown


def test_connect_links(user, request_data):
    markdown = _render(user, request_data)
    assert "(https://linkedin.com/in/octo)" in markdown
    assert "(mailto:account@example.com)" in markdown
    # Blog stands in for a missing personal website
    assert "logo=googlechrome&logoColor=white)](https://blog.example.com)" in markdown
    assert "Twitter/X" not in markdown


def test_contact_email_preferred(user, request_data):
    request_data.contact_prefs.email = "hire@example.com"
    markdown = _render(user, request_data)
    assert "(mailto:hire@example.com)" in markdown
    assert "account@example.com" not in markdown


def test_featured_project_block(user, request_data):
    markdown = _render(user, request_data)

    assert "### [alpha](https://github.com/octocat/alpha)" in markdown
    assert "> Alpha tool" in markdown
    assert "api/pin/?username=octocat&repo=alpha" in markdown
    assert "**Tech:** `Go` `gRPC` " in markdown
    assert (
        "⭐ 5 stars &nbsp;·&nbsp; 📝 120 commits &nbsp;·&nbsp; 👥 3 contributors"
        " &nbsp;·&nbsp; 🔤 Go / Shell &nbsp;·&nbsp; 🏷️ cli, devtools"
    ) in markdown
    # One separator between the two projects, one before the footer
    assert markdown.count("---\n\n") == 2


def test_tech_stack_omitted_without_badges(user, request_data):
    markdown = build_markdown(user, request_data, "pitch", [], [], _config(request_data))
    assert "Tech Stack" not in markdown
    assert "Featured Projects" not in markdown


def test_minimal_user(request_data):
    bare = User(username="ghost", email="", avatar_url="", bio="", location="", company="", blog="")
    config = ProfileConfigData()
    markdown = build_markdown(bare, request_data, "pitch", [], [], config)

    assert "<img src=" not in markdown.split("# Hi")[0]
    assert "📍" not in markdown
    assert "Reach me" not in markdown
    assert "mailto:" not in markdown


def test_output_is_deterministic(user, request_data):
    assert _render(user, request_data) == _render(user, request_data)
